"""Сервис нормализации фида товаров.

Читает JSON-фид (массив записей), приводит каждую запись к
NormalizedProduct: подставляет заглушки для отсутствующих полей,
рассчитывает цены по курсу, выбирает таксоны и строит slug.

Результат — NormalizationResult, в котором вызывающий код видит
отдельно "фид недоступен", "фид пуст", "битые записи" и факт
подстановки синтетического товара вместо данных.
"""

import json
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from spree_uploader.config import get_logger
from spree_uploader.models import NormalizedProduct, Specification, TaxonPath
from spree_uploader.services.pricing import (
    MarkupPricingPolicy,
    PricingPolicy,
    to_decimal,
)
from spree_uploader.services.taxonomy import select_taxon_keywords
from spree_uploader.utils import product_slug

logger = get_logger("feed_service")

PLACEHOLDER_RANGE: int = 10000
PLACEHOLDER_DESCRIPTION: str = (
    "<p>This is a test product description.</p>"
    "<ul><li>High quality</li><li>Fast shipping</li></ul>"
)
PLACEHOLDER_KEYWORDS: tuple[str, ...] = (
    "Electronics",
    "Clothing",
    "Home",
    "Beauty",
    "Sports",
    "Toys",
)
DEFAULT_STOCK_QUANTITY: int = 100
# Диапазон цены синтетического товара в местной валюте: [10, 500)
SYNTHETIC_PRICE_MIN: float = 10.0
SYNTHETIC_PRICE_MAX: float = 500.0

# Альтернативные имена полей записи фида, по порядку приоритета
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "name"),
    "product_id": ("productId", "sku", "id"),
    "price": ("price",),
    "brand": ("brand",),
    "source_url": ("sourceUrl", "url"),
    "description": ("description",),
    "images": ("images", "imageUrls"),
    "categories": ("categories", "keywords"),
    "specifications": ("specifications", "attributes"),
    "stock": ("stock", "stockQuantity", "quantity"),
    "rating": ("rating",),
    "taxon_path": ("categoryPath", "taxonPath"),
}

_IMAGE_SEPARATORS: tuple[str, ...] = (",", "|")


class FeedIssueKind(str, Enum):
    """Вид проблемы с фидом."""

    UNAVAILABLE = "unavailable"
    EMPTY = "empty"
    MALFORMED_RECORD = "malformed_record"


class FeedError(Exception):
    """Базовая ошибка чтения фида."""

    kind: FeedIssueKind = FeedIssueKind.UNAVAILABLE


class FeedUnavailableError(FeedError):
    """Файл фида отсутствует, не читается или не является JSON-массивом.

    Attributes:
        reason: unreadable, malformed_json или not_an_array.
    """

    kind = FeedIssueKind.UNAVAILABLE

    def __init__(self, message: str, reason: str = "unreadable") -> None:
        super().__init__(message)
        self.reason = reason


class EmptyFeedError(FeedError):
    """Фид прочитан, но не содержит ни одной записи."""

    kind = FeedIssueKind.EMPTY


class MalformedRecordError(FeedError):
    """Запись фида не может быть нормализована.

    Attributes:
        index: Позиция записи в фиде.
    """

    kind = FeedIssueKind.MALFORMED_RECORD

    def __init__(self, message: str, index: int) -> None:
        super().__init__(message)
        self.index = index


@dataclass(frozen=True)
class FeedIssue:
    """Проблема, обнаруженная при нормализации.

    Attributes:
        kind: Вид проблемы.
        message: Описание.
        index: Позиция записи (для битых записей).
    """

    kind: FeedIssueKind
    message: str
    index: int | None = None


@dataclass
class NormalizationResult:
    """Итог нормализации фида.

    Attributes:
        products: Товары в порядке фида.
        fallback_used: Вместо фида подставлен синтетический товар.
        issues: Все обнаруженные проблемы.
        total_records: Количество записей в прочитанном фиде.
    """

    products: list[NormalizedProduct] = field(default_factory=list)
    fallback_used: bool = False
    issues: list[FeedIssue] = field(default_factory=list)
    total_records: int = 0

    @property
    def malformed_count(self) -> int:
        return sum(
            1 for issue in self.issues
            if issue.kind is FeedIssueKind.MALFORMED_RECORD
        )


def load_feed(path: str | Path) -> list[Any]:
    """Читает JSON-фид с диска.

    Args:
        path: Путь к файлу; кавычки по краям (результат копирования
            пути из проводника) отбрасываются.

    Returns:
        Непустой список записей в исходном порядке.

    Raises:
        FeedUnavailableError: Файл не найден, не читается, невалидный
            JSON или верхний уровень не массив.
        EmptyFeedError: Массив пуст.
    """
    feed_path = Path(str(path).strip().strip('"'))

    try:
        text = feed_path.read_text(encoding="utf-8")
    except OSError as e:
        raise FeedUnavailableError(
            f"Не удалось прочитать фид {feed_path}: {e}"
        ) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FeedUnavailableError(
            f"Фид {feed_path} не является корректным JSON: {e}",
            reason="malformed_json",
        ) from e

    if not isinstance(data, list):
        raise FeedUnavailableError(
            f"Фид {feed_path} должен содержать JSON-массив, "
            f"получено: {type(data).__name__}",
            reason="not_an_array",
        )

    if not data:
        raise EmptyFeedError(f"Фид {feed_path} не содержит товаров")

    logger.info("feed_loaded", path=str(feed_path), records=len(data))
    return data


def _first_present(record: Mapping[str, Any], key: str) -> Any:
    """Значение первого непустого алиаса поля или None.

    Строки из одних пробелов считаются отсутствующими.
    """
    for alias in FIELD_ALIASES[key]:
        value = record.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_images(value: Any) -> tuple[str, ...]:
    """URL изображений из списка или строки (разделители: запятая, |, пробел)."""
    if value is None:
        return ()
    if isinstance(value, str):
        text = value
        for separator in _IMAGE_SEPARATORS:
            text = text.replace(separator, " ")
        return tuple(part for part in text.split() if part)
    if isinstance(value, Sequence):
        return tuple(str(item).strip() for item in value if item and str(item).strip())
    return ()


def parse_keywords(value: Any) -> list[str]:
    """Ключевые слова категорий из списка или строки через запятую."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Sequence):
        return [str(item).strip() for item in value if item and str(item).strip()]
    return []


def parse_specifications(value: Any) -> tuple[Specification, ...]:
    """Характеристики из списка {name, value} или словаря name -> value.

    Записи без названия отбрасываются.
    """
    if not value:
        return ()

    pairs: list[tuple[Any, Any]] = []
    if isinstance(value, Mapping):
        pairs = list(value.items())
    elif isinstance(value, Sequence) and not isinstance(value, str):
        for item in value:
            if isinstance(item, Mapping):
                pairs.append((item.get("name"), item.get("value")))

    specifications: list[Specification] = []
    for name, spec_value in pairs:
        name_text = str(name).strip() if name is not None else ""
        if not name_text:
            continue
        value_text = "" if spec_value is None else str(spec_value).strip()
        specifications.append(Specification(name=name_text, value=value_text))
    return tuple(specifications)


def _parse_stock(value: Any) -> int:
    if value is None:
        return DEFAULT_STOCK_QUANTITY
    try:
        return max(0, int(float(str(value).strip())))
    except (ValueError, OverflowError):
        return DEFAULT_STOCK_QUANTITY


class FeedNormalizer:
    """Нормализатор записей фида.

    Чистое преобразование (записи, курс, генератор случайных чисел)
    -> список NormalizedProduct. Генератор передаётся явно, поэтому
    при фиксированном seed результат воспроизводим.

    Attributes:
        _exchange_rate: Единиц местной валюты за 1 USD.
        _rng: Источник случайности для заглушек и наценки.
        _pricing: Стратегия расчёта цен.
        _sku_suffix: Суффикс артикула.
        _taxon_path: Путь категории из настроек, общий для всего фида.
    """

    def __init__(
        self,
        exchange_rate: Decimal,
        rng: random.Random | None = None,
        pricing: PricingPolicy | None = None,
        sku_suffix: str = "",
        taxon_path: TaxonPath | None = None,
    ) -> None:
        if exchange_rate <= 0:
            raise ValueError(f"Курс должен быть больше нуля: {exchange_rate}")
        self._exchange_rate = exchange_rate
        self._rng = rng or random.Random()
        self._pricing = pricing or MarkupPricingPolicy()
        self._sku_suffix = sku_suffix.strip()
        self._taxon_path = taxon_path

    def normalize_source(
        self,
        path: str | Path | None,
        allow_fallback: bool = True,
    ) -> NormalizationResult:
        """Читает и нормализует фид целиком.

        Если фид не задан, недоступен, пуст или не содержит ни одной
        пригодной записи, возвращает ровно один синтетический товар
        с fallback_used=True и причиной в issues.

        Args:
            path: Путь к JSON-фиду или None.
            allow_fallback: False — пробрасывать ошибки чтения фида.

        Raises:
            FeedUnavailableError, EmptyFeedError: Только при
                allow_fallback=False.
        """
        if not path:
            error: FeedError = FeedUnavailableError("Путь к фиду не задан")
            if not allow_fallback:
                raise error
            return self._fallback(NormalizationResult(), error)

        try:
            records = load_feed(path)
        except FeedError as e:
            if not allow_fallback:
                raise
            return self._fallback(NormalizationResult(), e)

        result = self.normalize_records(records)

        if not result.products:
            error = EmptyFeedError(
                f"В фиде нет пригодных записей (битых: {result.malformed_count})"
            )
            if not allow_fallback:
                raise error
            return self._fallback(result, error)

        return result

    def normalize_records(self, records: Sequence[Any]) -> NormalizationResult:
        """Нормализует записи по порядку; битые записи пропускаются.

        Args:
            records: Записи фида.

        Returns:
            NormalizationResult с товарами и списком битых записей.
        """
        result = NormalizationResult(total_records=len(records))

        for index, record in enumerate(records):
            try:
                product = self.normalize_record(record, index)
            except MalformedRecordError as e:
                logger.warning(
                    "feed_record_malformed",
                    index=e.index,
                    error=str(e),
                )
                result.issues.append(
                    FeedIssue(kind=e.kind, message=str(e), index=e.index)
                )
                continue
            result.products.append(product)

        logger.info(
            "feed_normalized",
            total_records=len(records),
            normalized=len(result.products),
            malformed=result.malformed_count,
        )
        return result

    def normalize_record(self, record: Any, index: int = 0) -> NormalizedProduct:
        """Приводит одну запись фида к NormalizedProduct.

        Args:
            record: JSON-объект записи.
            index: Позиция записи в фиде.

        Raises:
            MalformedRecordError: Запись не объект или цена не является
                неотрицательным числом.
        """
        if not isinstance(record, Mapping):
            raise MalformedRecordError(
                f"Запись #{index} должна быть объектом, "
                f"получено: {type(record).__name__}",
                index,
            )

        placeholder = self._rng.randrange(PLACEHOLDER_RANGE)

        raw_price = _first_present(record, "price")
        try:
            price = to_decimal(raw_price) if raw_price is not None else Decimal("0")
            prices = self._pricing.derive(price, self._exchange_rate, self._rng)
        except (ValueError, ArithmeticError) as e:
            raise MalformedRecordError(f"Запись #{index}: {e}", index) from e

        title = str(_first_present(record, "title") or f"Test Product {placeholder}").strip()
        product_id = str(_first_present(record, "product_id") or f"TEST{placeholder}").strip()
        sku = f"{product_id} {self._sku_suffix}" if self._sku_suffix else product_id

        categories = _first_present(record, "categories")
        if categories is None:
            keywords = tuple(self._rng.sample(PLACEHOLDER_KEYWORDS, 2))
        else:
            keywords = select_taxon_keywords(parse_keywords(categories))

        raw_rating = _first_present(record, "rating")
        try:
            rating = float(raw_rating) if raw_rating is not None else None
        except (TypeError, ValueError):
            rating = None
        if rating is None:
            rating = round(self._rng.uniform(1, 5), 1)

        taxon_path = TaxonPath.parse(_first_present(record, "taxon_path"))
        if taxon_path is None:
            taxon_path = self._taxon_path

        return NormalizedProduct(
            title=title,
            product_id=product_id,
            sku=sku,
            slug=product_slug(title, sku),
            list_price=prices.list_price,
            cost_price=prices.cost_price,
            compare_at_price=prices.compare_at_price,
            brand=str(_first_present(record, "brand") or "").strip(),
            source_url=str(_first_present(record, "source_url") or "").strip(),
            description=str(
                _first_present(record, "description") or PLACEHOLDER_DESCRIPTION
            ),
            images=parse_images(_first_present(record, "images")),
            taxon_keywords=keywords,
            taxon_path=taxon_path,
            specifications=parse_specifications(
                _first_present(record, "specifications")
            ),
            stock_quantity=_parse_stock(_first_present(record, "stock")),
            rating=rating,
            feed_index=index,
        )

    def synthesize(self) -> NormalizedProduct:
        """Генерирует один синтетический товар со случайной ценой."""
        price = round(self._rng.uniform(SYNTHETIC_PRICE_MIN, SYNTHETIC_PRICE_MAX), 2)
        product = self.normalize_record({"price": price}, index=0)
        return replace(product, synthetic=True)

    def _fallback(
        self,
        result: NormalizationResult,
        error: FeedError,
    ) -> NormalizationResult:
        logger.warning(
            "feed_fallback_used",
            reason=error.kind.value,
            error=str(error),
        )
        result.issues.append(FeedIssue(kind=error.kind, message=str(error)))
        result.products = [self.synthesize()]
        result.fallback_used = True
        return result
