"""Сервис загрузки нормализованных товаров в админку.

Передаёт товары драйверу строго по одному и по порядку фида.
Ошибка одного товара записывается как failed и не прерывает
загрузку остальных. Каждый результат сразу попадает в журнал
(репозиторий) и в JSON-отчёт запуска.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from spree_uploader.config import get_logger
from spree_uploader.models import (
    NormalizedProduct,
    SubmissionOutcome,
    SubmissionStatus,
    UploadResult,
)
from spree_uploader.repositories.base import BaseUploadRepository
from spree_uploader.services.driver import SubmissionDriver
from spree_uploader.services.report_service import ReportService

logger = get_logger("upload_service")


@dataclass(frozen=True)
class UploadSummary:
    """Итоги запуска загрузки.

    Attributes:
        run_id: Идентификатор запуска в журнале.
        total: Сколько товаров передано драйверу.
        created: Создано новых товаров.
        updated: Обновлено существующих (конфликт SKU).
        failed: Товаров с ошибкой.
        skipped: Пропущено из-за начального смещения.
        report_path: Путь к JSON-отчёту (пустая строка, если отчёта нет).
    """

    run_id: int
    total: int
    created: int
    updated: int
    failed: int
    skipped: int
    report_path: str

    @property
    def uploaded(self) -> int:
        return self.created + self.updated


class UploadService:
    """Последовательная загрузка товаров с изоляцией ошибок.

    Attributes:
        _driver: Драйвер отправки товара.
        _repository: Журнал загрузок.
        _report: Отчёт текущего запуска.
    """

    def __init__(
        self,
        driver: SubmissionDriver,
        repository: BaseUploadRepository,
        report_service: ReportService,
    ) -> None:
        self._driver = driver
        self._repository = repository
        self._report = report_service

    async def run(
        self,
        products: Sequence[NormalizedProduct],
        feed_name: str,
        start_offset: int = 0,
    ) -> UploadSummary:
        """Загружает товары начиная с записи фида start_offset.

        Args:
            products: Нормализованные товары в порядке фида.
            feed_name: Имя фида для журнала.
            start_offset: Индекс записи фида, с которой начинать.

        Returns:
            UploadSummary с количеством created / updated / failed.

        Raises:
            sqlite3.Error: Не удалось записать результат в журнал. Журнал
                нужен для продолжения с места остановки, поэтому без него
                загрузка прерывается. Ошибка записи JSON-отчёта только
                логируется.
        """
        pending = [p for p in products if p.feed_index >= start_offset]
        skipped = len(products) - len(pending)
        run_id = self._repository.start_run(feed_name)

        logger.info(
            "upload_started",
            run_id=run_id,
            feed_name=feed_name,
            total=len(pending),
            skipped=skipped,
            start_offset=start_offset,
        )

        counts = {status: 0 for status in SubmissionStatus}
        report_path = ""

        for position, product in enumerate(pending, start=1):
            outcome = await self._submit_one(product)
            counts[outcome.status] += 1

            result = UploadResult(
                feed_index=product.feed_index,
                sku=product.sku,
                product_name=product.title,
                source_url=product.source_url,
                destination_url=outcome.resource_url,
                status=outcome.status,
                error=outcome.error,
            )
            self._repository.append_result(run_id, result)
            try:
                report_path = str(self._report.append(result))
            except OSError as e:
                logger.error(
                    "report_write_failed",
                    feed_index=product.feed_index,
                    sku=product.sku,
                    error=str(e),
                )

            logger.info(
                "upload_progress",
                position=position,
                total=len(pending),
                feed_index=product.feed_index,
                sku=product.sku,
                status=outcome.status.value,
            )

        summary = UploadSummary(
            run_id=run_id,
            total=len(pending),
            created=counts[SubmissionStatus.CREATED],
            updated=counts[SubmissionStatus.UPDATED],
            failed=counts[SubmissionStatus.FAILED],
            skipped=skipped,
            report_path=report_path,
        )

        logger.info(
            "upload_completed",
            run_id=run_id,
            created=summary.created,
            updated=summary.updated,
            failed=summary.failed,
            report_path=report_path,
        )
        return summary

    async def _submit_one(self, product: NormalizedProduct) -> SubmissionOutcome:
        """Отправляет товар; любое исключение превращается в failed."""
        try:
            return await self._driver.submit(product)
        except Exception as e:
            logger.error(
                "product_submission_failed",
                exc_info=True,
                feed_index=product.feed_index,
                sku=product.sku,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SubmissionOutcome.failed(f"{type(e).__name__}: {e}")
