"""Точка входа загрузчика товаров в админку Spree.

Связывает компоненты и запускает полный цикл:
1. Загрузка конфигурации (.env + аргументы) и логирования.
2. Чтение и нормализация фида.
3. Отправка товаров в админку через браузер.
4. Журнал в SQLite и отчёты JSON/Excel.

Запуск: python -m spree_uploader --feed products.json --rate 32.5
"""

import argparse
import asyncio
import random
import sys
from pathlib import Path

from spree_uploader.config import (
    ConfigValidationError,
    Settings,
    get_logger,
    load_settings,
    set_feed_name,
    set_run_id,
    setup_logging,
)
from spree_uploader.models import TaxonPath
from spree_uploader.repositories import SQLiteUploadRepository
from spree_uploader.services import (
    BrowserService,
    FeedNormalizer,
    MediaService,
    NormalizationResult,
    ReportService,
    SpreeAdminDriver,
    UploadService,
)

logger = get_logger("main")

SYNTHETIC_FEED_NAME: str = "synthetic"

# Аргумент командной строки -> переменная окружения
ARGUMENT_ENV_NAMES: dict[str, str] = {
    "feed": "FEED_PATH",
    "rate": "EXCHANGE_RATE",
    "taxon": "TAXON_PATH",
    "offset": "START_OFFSET",
    "seed": "RANDOM_SEED",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spree_uploader",
        description="Загрузка товаров из JSON-фида в админку Spree",
    )
    parser.add_argument("--feed", help="путь к JSON-фиду товаров")
    parser.add_argument("--rate", help="курс: единиц местной валюты за 1 USD")
    parser.add_argument("--taxon", help="путь категории, например 'A > B > C'")
    parser.add_argument("--offset", help="индекс записи фида, с которой начать")
    parser.add_argument("--seed", help="seed генератора случайных чисел")
    parser.add_argument(
        "--resume",
        action="store_true",
        help="продолжить после последней загруженной записи фида",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="только нормализовать фид, без браузера",
    )
    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict[str, str]:
    """Переводит заданные аргументы в переопределения переменных окружения."""
    overrides = {
        env_name: str(getattr(args, arg_name))
        for arg_name, env_name in ARGUMENT_ENV_NAMES.items()
        if getattr(args, arg_name) is not None
    }
    if args.resume:
        overrides["RESUME"] = "true"
    return overrides


def feed_name_for(feed_path: str) -> str:
    return Path(feed_path).stem if feed_path else SYNTHETIC_FEED_NAME


def create_normalizer(settings: Settings) -> FeedNormalizer:
    """Создаёт нормализатор с генератором из RANDOM_SEED (если задан)."""
    return FeedNormalizer(
        exchange_rate=settings.feed.exchange_rate,
        rng=random.Random(settings.feed.random_seed),
        sku_suffix=settings.feed.sku_suffix,
        taxon_path=TaxonPath.parse(settings.feed.taxon_path),
    )


def create_repository(settings: Settings) -> SQLiteUploadRepository:
    repository = SQLiteUploadRepository(db_path=settings.database.db_path)
    repository.initialize()
    return repository


def create_driver(settings: Settings) -> SpreeAdminDriver:
    return SpreeAdminDriver(
        settings=settings.admin,
        browser_service=BrowserService(settings=settings.browser),
        media_service=MediaService(settings=settings.media),
    )


def log_normalization(result: NormalizationResult) -> None:
    for issue in result.issues:
        logger.warning(
            "feed_issue",
            kind=issue.kind.value,
            index=issue.index,
            message=issue.message,
        )
    if result.fallback_used:
        logger.warning("feed_replaced_with_synthetic_product")


def resolve_start_offset(
    settings: Settings,
    repository: SQLiteUploadRepository,
    feed_name: str,
) -> int:
    """Начальный индекс: START_OFFSET или, при RESUME, следующий после загруженного."""
    offset = settings.feed.start_offset
    if settings.feed.resume:
        last_index = repository.get_last_feed_index(feed_name)
        if last_index is not None:
            offset = max(offset, last_index + 1)
        logger.info("resume_offset_resolved", last_index=last_index, offset=offset)
    return offset


async def run_pipeline(settings: Settings, dry_run: bool = False) -> int:
    """Нормализует фид и загружает товары в админку.

    Returns:
        Код возврата: 0 — все товары загружены, 2 — были ошибки.
    """
    set_feed_name(feed_name_for(settings.feed.feed_path))
    normalizer = create_normalizer(settings)
    result = normalizer.normalize_source(
        settings.feed.feed_path or None,
        allow_fallback=settings.feed.allow_fallback,
    )
    log_normalization(result)

    if dry_run:
        for product in result.products:
            logger.info(
                "product_normalized",
                feed_index=product.feed_index,
                title=product.title,
                sku=product.sku,
                slug=product.slug,
                list_price=str(product.list_price),
                cost_price=str(product.cost_price),
                compare_at_price=str(product.compare_at_price),
                taxons=list(product.taxon_keywords),
                taxon_path=str(product.taxon_path or ""),
            )
        return 0

    feed_name = SYNTHETIC_FEED_NAME if result.fallback_used else feed_name_for(
        settings.feed.feed_path
    )
    set_feed_name(feed_name)
    repository = create_repository(settings)
    driver = create_driver(settings)
    report_service = ReportService(settings=settings.report, feed_name=feed_name)

    try:
        start_offset = resolve_start_offset(settings, repository, feed_name)
        await driver.start()

        upload_service = UploadService(
            driver=driver,
            repository=repository,
            report_service=report_service,
        )
        summary = await upload_service.run(
            result.products,
            feed_name=feed_name,
            start_offset=start_offset,
        )

        if settings.report.export_xlsx:
            report_service.export_xlsx(repository.get_run_results(summary.run_id))

        return 2 if summary.failed else 0

    finally:
        await driver.close()
        repository.close()
        logger.info("all_resources_closed")


def main(argv: list[str] | None = None) -> None:
    """Главная функция: конфигурация, логирование, запуск конвейера."""
    args = parse_args(argv)

    try:
        settings = load_settings(build_overrides(args))
    except ConfigValidationError as e:
        print(f"\n[ОШИБКА КОНФИГУРАЦИИ]\n{e}")
        print("\nПроверьте файл .env (см. .env.example для справки).")
        sys.exit(1)

    setup_logging(level=settings.log.level, log_file_path=settings.log.file_path)
    run_id = set_run_id()

    logger.info(
        "application_started",
        run_id=run_id,
        admin_url=settings.admin.base_url,
        feed_path=settings.feed.feed_path,
        exchange_rate=str(settings.feed.exchange_rate),
        dry_run=args.dry_run,
    )

    try:
        exit_code = asyncio.run(run_pipeline(settings, dry_run=args.dry_run))
    except KeyboardInterrupt:
        logger.info("application_interrupted_by_user")
        print("\nПрограмма остановлена пользователем (Ctrl+C).")
        sys.exit(130)
    except Exception as e:
        logger.critical(
            "application_fatal_error",
            exc_info=True,
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"\nКритическая ошибка: {e}")
        sys.exit(1)

    logger.info("application_finished", run_id=run_id, exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
