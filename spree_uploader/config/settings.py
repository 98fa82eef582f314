"""Модуль конфигурации приложения.

Загружает переменные окружения из .env файла, валидирует обязательные
параметры (доступ к админке Spree, курс валюты) и предоставляет единый
объект Settings. Значения из командной строки передаются через
``overrides`` и имеют приоритет над окружением.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv


def _load_env() -> None:
    """Загружает переменные окружения из .env файла в корне проекта.

    Если файл не найден, переменные берутся из системного окружения.
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    env_path = project_root / ".env"
    load_dotenv(dotenv_path=env_path)


class ConfigValidationError(Exception):
    """Ошибка валидации конфигурации.

    Выбрасывается при отсутствии обязательных переменных окружения
    или при некорректных значениях параметров.
    """


@dataclass(frozen=True)
class AdminSettings:
    """Доступ к админ-панели Spree и параметры формы товара.

    Attributes:
        base_url: Адрес магазина без завершающего слэша.
        email: Логин администратора.
        password: Пароль администратора.
        prototype_id: Значение option для прототипа товара.
        shipping_category: Подпись категории доставки в выпадающем списке.
        shipping_category_id: Значение option категории доставки (fallback).
        available_on_offset_days: На сколько дней назад ставить
            дату доступности товара.
        stock_location: Подпись склада для движения остатков
            (пустая строка — склад по умолчанию).
    """

    base_url: str
    email: str
    password: str
    prototype_id: str
    shipping_category: str
    shipping_category_id: str
    available_on_offset_days: int
    stock_location: str

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/admin/login"

    @property
    def new_product_url(self) -> str:
        return f"{self.base_url}/admin/products/new"

    @property
    def products_url(self) -> str:
        return f"{self.base_url}/admin/products"


@dataclass(frozen=True)
class BrowserSettings:
    """Настройки Playwright-браузера.

    Attributes:
        headless: Запуск без графического интерфейса.
        navigation_timeout: Таймаут навигации в миллисекундах.
        page_wait_time: Пауза после действий на странице (мс).
        navigation_retries: Число попыток перехода на страницу.
        navigation_retry_delay: Базовая задержка между попытками (сек),
            растёт линейно с номером попытки.
    """

    headless: bool
    navigation_timeout: int
    page_wait_time: int
    navigation_retries: int
    navigation_retry_delay: float


@dataclass(frozen=True)
class FeedSettings:
    """Настройки фида товаров.

    Attributes:
        feed_path: Путь к JSON-файлу фида (пустая строка — фида нет).
        exchange_rate: Курс: единиц местной валюты за 1 USD.
        taxon_path: Иерархический путь категории ("A > B > C").
        start_offset: Индекс записи фида, с которой начинать загрузку.
        resume: Продолжить с записи, следующей за последней загруженной.
        random_seed: Seed генератора заглушек и наценки (None — случайный).
        sku_suffix: Суффикс, добавляемый к идентификатору товара в SKU.
        allow_fallback: Подставлять синтетический товар, если фид недоступен.
    """

    feed_path: str
    exchange_rate: Decimal
    taxon_path: str
    start_offset: int
    resume: bool
    random_seed: int | None
    sku_suffix: str
    allow_fallback: bool


@dataclass(frozen=True)
class MediaSettings:
    """Настройки загрузки изображений.

    Attributes:
        image_dir: Каталог для скачанных изображений.
        download_timeout: Таймаут скачивания одного файла (сек).
    """

    image_dir: str
    download_timeout: float


@dataclass(frozen=True)
class DatabaseSettings:
    """Настройки базы данных SQLite.

    Attributes:
        db_path: Путь к файлу базы данных.
    """

    db_path: str


@dataclass(frozen=True)
class ReportSettings:
    """Настройки отчётов о загрузке.

    Attributes:
        report_dir: Каталог для JSON/XLSX отчётов.
        export_xlsx: Дополнительно сохранять отчёт в Excel.
    """

    report_dir: str
    export_xlsx: bool


@dataclass(frozen=True)
class LogSettings:
    """Настройки логирования.

    Attributes:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Путь к файлу логов (пустая строка — только консоль).
    """

    level: str
    file_path: str


@dataclass(frozen=True)
class Settings:
    """Корневой объект конфигурации приложения."""

    admin: AdminSettings
    browser: BrowserSettings
    feed: FeedSettings
    media: MediaSettings
    database: DatabaseSettings
    report: ReportSettings
    log: LogSettings


def _parse_bool(value: str) -> bool:
    """Возвращает True для 'true', '1', 'yes' (регистронезависимо)."""
    return value.strip().lower() in ("true", "1", "yes")


def _parse_int(value: str, param_name: str) -> int:
    """Преобразует строковое значение в int с валидацией.

    Raises:
        ConfigValidationError: Если значение не является целым числом.
    """
    try:
        return int(value)
    except ValueError:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть целым числом, "
            f"получено: '{value}'"
        )


def _parse_float(value: str, param_name: str) -> float:
    """Преобразует строковое значение в float с валидацией.

    Raises:
        ConfigValidationError: Если значение не является числом.
    """
    try:
        return float(value)
    except ValueError:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть числом, "
            f"получено: '{value}'"
        )


def _parse_rate(value: str | None, param_name: str) -> Decimal:
    """Разбирает курс валюты: обязательное положительное десятичное число.

    Допускает запятую в качестве десятичного разделителя.

    Raises:
        ConfigValidationError: Если курс не задан, не число или <= 0.
    """
    raw = _validate_required(value, param_name).replace(",", ".")
    try:
        rate = Decimal(raw)
    except InvalidOperation:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть числом, получено: '{raw}'"
        )
    if not rate.is_finite() or rate <= 0:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть больше нуля, "
            f"получено: {raw}"
        )
    return rate


def _validate_required(value: str | None, param_name: str) -> str:
    """Проверяет, что обязательная переменная задана и не пуста.

    Raises:
        ConfigValidationError: Если переменная отсутствует или пуста.
    """
    if value is None or value.strip() == "":
        raise ConfigValidationError(
            f"Обязательная переменная окружения '{param_name}' не задана. "
            f"Проверьте файл .env (см. .env.example)."
        )
    return value.strip()


def _validate_log_level(value: str) -> str:
    """Проверяет корректность уровня логирования.

    Raises:
        ConfigValidationError: Если уровень не входит в допустимые.
    """
    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    normalized = value.strip().upper()
    if normalized not in valid_levels:
        raise ConfigValidationError(
            f"Уровень логирования '{value}' недопустим. "
            f"Допустимые значения: {', '.join(valid_levels)}"
        )
    return normalized


def _validate_positive_int(value: int, param_name: str) -> int:
    if value <= 0:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть положительным числом, "
            f"получено: {value}"
        )
    return value


def _validate_non_negative_int(value: int, param_name: str) -> int:
    if value < 0:
        raise ConfigValidationError(
            f"Параметр '{param_name}' не может быть отрицательным, "
            f"получено: {value}"
        )
    return value


def load_settings(overrides: Mapping[str, str] | None = None) -> Settings:
    """Загружает и валидирует все настройки приложения.

    Читает переменные окружения из .env файла, накладывает поверх них
    ``overrides`` (аргументы командной строки), проверяет обязательные
    параметры и возвращает иммутабельный объект Settings.

    Args:
        overrides: Значения, имеющие приоритет над окружением,
            в виде {ИМЯ_ПЕРЕМЕННОЙ: значение}.

    Returns:
        Полностью валидированный объект Settings.

    Raises:
        ConfigValidationError: Если обязательные переменные отсутствуют
            или значения параметров некорректны. Сообщение содержит
            все найденные ошибки разом.
    """
    _load_env()
    overrides = dict(overrides or {})

    def env(name: str, default: str | None = None) -> str | None:
        if name in overrides:
            return overrides[name]
        return os.getenv(name, default)

    errors: list[str] = []

    # --- Обязательные переменные ---
    required: dict[str, str] = {}
    for name in ("SPREE_ADMIN_URL", "SPREE_ADMIN_EMAIL", "SPREE_ADMIN_PASSWORD"):
        try:
            required[name] = _validate_required(env(name), name)
        except ConfigValidationError as e:
            errors.append(str(e))
            required[name] = ""

    try:
        exchange_rate = _parse_rate(env("EXCHANGE_RATE"), "EXCHANGE_RATE")
    except ConfigValidationError as e:
        errors.append(str(e))
        exchange_rate = Decimal("1")

    # --- Админка ---
    try:
        available_on_offset = _validate_non_negative_int(
            _parse_int(
                env("AVAILABLE_ON_OFFSET_DAYS", "2") or "2",
                "AVAILABLE_ON_OFFSET_DAYS",
            ),
            "AVAILABLE_ON_OFFSET_DAYS",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        available_on_offset = 2

    # --- Браузер ---
    headless = _parse_bool(env("HEADLESS_MODE", "false") or "false")

    try:
        nav_timeout = _validate_positive_int(
            _parse_int(env("NAVIGATION_TIMEOUT", "60000") or "", "NAVIGATION_TIMEOUT"),
            "NAVIGATION_TIMEOUT",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        nav_timeout = 60000

    try:
        page_wait = _validate_positive_int(
            _parse_int(env("PAGE_WAIT_TIME", "1000") or "", "PAGE_WAIT_TIME"),
            "PAGE_WAIT_TIME",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        page_wait = 1000

    try:
        nav_retries = _validate_positive_int(
            _parse_int(env("NAVIGATION_RETRIES", "3") or "", "NAVIGATION_RETRIES"),
            "NAVIGATION_RETRIES",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        nav_retries = 3

    try:
        nav_retry_delay = _parse_float(
            env("NAVIGATION_RETRY_DELAY", "2.0") or "", "NAVIGATION_RETRY_DELAY"
        )
        if nav_retry_delay < 0:
            raise ConfigValidationError(
                "Параметр 'NAVIGATION_RETRY_DELAY' не может быть отрицательным"
            )
    except ConfigValidationError as e:
        errors.append(str(e))
        nav_retry_delay = 2.0

    # --- Фид ---
    try:
        start_offset = _validate_non_negative_int(
            _parse_int(env("START_OFFSET", "0") or "0", "START_OFFSET"),
            "START_OFFSET",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        start_offset = 0

    random_seed: int | None = None
    seed_raw = (env("RANDOM_SEED", "") or "").strip()
    if seed_raw:
        try:
            random_seed = _parse_int(seed_raw, "RANDOM_SEED")
        except ConfigValidationError as e:
            errors.append(str(e))

    # --- Медиа ---
    try:
        download_timeout = _parse_float(
            env("IMAGE_DOWNLOAD_TIMEOUT", "30") or "", "IMAGE_DOWNLOAD_TIMEOUT"
        )
        if download_timeout <= 0:
            raise ConfigValidationError(
                "Параметр 'IMAGE_DOWNLOAD_TIMEOUT' должен быть больше нуля"
            )
    except ConfigValidationError as e:
        errors.append(str(e))
        download_timeout = 30.0

    # --- Логирование ---
    try:
        log_level = _validate_log_level(env("LOG_LEVEL", "INFO") or "")
    except ConfigValidationError as e:
        errors.append(str(e))
        log_level = "INFO"

    # --- Если есть ошибки — выбрасываем все разом ---
    if errors:
        error_message = "Ошибки конфигурации:\n" + "\n".join(
            f"  - {err}" for err in errors
        )
        raise ConfigValidationError(error_message)

    return Settings(
        admin=AdminSettings(
            base_url=required["SPREE_ADMIN_URL"].rstrip("/"),
            email=required["SPREE_ADMIN_EMAIL"],
            password=required["SPREE_ADMIN_PASSWORD"],
            prototype_id=env("PROTOTYPE_ID", "1") or "",
            shipping_category=env(
                "SHIPPING_CATEGORY", "Public - TR to US by Weight"
            ) or "",
            shipping_category_id=env("SHIPPING_CATEGORY_ID", "5698") or "",
            available_on_offset_days=available_on_offset,
            stock_location=env("STOCK_LOCATION", "") or "",
        ),
        browser=BrowserSettings(
            headless=headless,
            navigation_timeout=nav_timeout,
            page_wait_time=page_wait,
            navigation_retries=nav_retries,
            navigation_retry_delay=nav_retry_delay,
        ),
        feed=FeedSettings(
            feed_path=(env("FEED_PATH", "") or "").strip().strip('"'),
            exchange_rate=exchange_rate,
            taxon_path=(env("TAXON_PATH", "") or "").strip(),
            start_offset=start_offset,
            resume=_parse_bool(env("RESUME", "false") or "false"),
            random_seed=random_seed,
            sku_suffix=(env("SKU_SUFFIX", "") or "").strip(),
            allow_fallback=_parse_bool(env("ALLOW_FALLBACK", "true") or "true"),
        ),
        media=MediaSettings(
            image_dir=env("IMAGE_DIR", "data/images") or "data/images",
            download_timeout=download_timeout,
        ),
        database=DatabaseSettings(
            db_path=env("DB_PATH", "data/uploads.db") or "data/uploads.db",
        ),
        report=ReportSettings(
            report_dir=env("REPORT_DIR", "data/reports") or "data/reports",
            export_xlsx=_parse_bool(env("EXPORT_XLSX", "false") or "false"),
        ),
        log=LogSettings(
            level=log_level,
            file_path=env("LOG_FILE_PATH", "") or "",
        ),
    )
