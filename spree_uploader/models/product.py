"""Доменные модели товаров.

Содержит dataclass-модели товара на этапе подготовки к загрузке:
    - Specification: одна характеристика товара (название/значение)
    - TaxonPath: иерархический путь категории в дереве таксонов
    - NormalizedProduct: товар, готовый к отправке в админку Spree
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

# Разделители "хлебных крошек" в строковом представлении пути категории.
_BREADCRUMB_SEPARATORS: tuple[str, ...] = ("->", ">", "/")


@dataclass(frozen=True)
class Specification:
    """Характеристика товара для вкладки Properties.

    Attributes:
        name: Название свойства (например, "Материал").
        value: Значение свойства (например, "Хлопок").
    """

    name: str
    value: str


@dataclass(frozen=True)
class TaxonPath:
    """Путь категории от корня дерева к листу.

    Attributes:
        parts: Сегменты пути по порядку, например
            ("Cosmetics", "Hair Care", "Combs").
    """

    parts: tuple[str, ...]

    @property
    def is_hierarchical(self) -> bool:
        """Путь из двух и более сегментов."""
        return len(self.parts) >= 2

    def __str__(self) -> str:
        return " > ".join(self.parts)

    @classmethod
    def parse(cls, value: Any) -> "TaxonPath | None":
        """Создаёт TaxonPath из поддерживаемых входных форм.

        Принимает словарь {"parts": [...]}, список сегментов или строку
        вида "A > B > C" (также "A -> B -> C" и "A/B/C"). Пустые сегменты
        отбрасываются.

        Args:
            value: Входное значение из фида или конфигурации.

        Returns:
            TaxonPath или None, если сегментов нет.
        """
        if value is None:
            return None

        if isinstance(value, Mapping):
            value = value.get("parts")

        if isinstance(value, str):
            segments: list[str] = [value]
            for separator in _BREADCRUMB_SEPARATORS:
                if separator in value:
                    segments = value.split(separator)
                    break
        elif isinstance(value, Iterable):
            segments = [str(item) for item in value if item is not None]
        else:
            return None

        parts = tuple(s.strip() for s in segments if s and s.strip())
        if not parts:
            return None
        return cls(parts=parts)


@dataclass(frozen=True)
class NormalizedProduct:
    """Товар после нормализации фида.

    Создаётся один раз на запись фида непосредственно перед передачей
    в драйвер админки и после этого не изменяется. Все цены — Decimal
    с двумя знаками после запятой и неотрицательные.

    Attributes:
        title: Название товара.
        product_id: Идентификатор товара у поставщика.
        sku: Артикул для админки (product_id + суффикс).
        slug: URL-сегмент товара, производный от названия и SKU.
        list_price: Цена продажи (master price).
        cost_price: Себестоимость в базовой валюте.
        compare_at_price: Зачёркнутая "старая" цена.
        brand: Бренд.
        source_url: Ссылка на товар у поставщика.
        description: Описание (HTML-фрагмент).
        images: URL изображений по порядку.
        taxon_keywords: Не более двух ключевых слов категорий.
        taxon_path: Иерархический путь категории, если задан.
        specifications: Характеристики товара.
        stock_quantity: Остаток на складе.
        rating: Рейтинг товара (1–5).
        feed_index: Позиция записи в фиде.
        synthetic: Товар сгенерирован вместо недоступного фида.
        normalized_at: Время нормализации (UTC).
    """

    title: str
    product_id: str
    sku: str
    slug: str
    list_price: Decimal
    cost_price: Decimal
    compare_at_price: Decimal
    brand: str = ""
    source_url: str = ""
    description: str = ""
    images: tuple[str, ...] = ()
    taxon_keywords: tuple[str, ...] = ()
    taxon_path: TaxonPath | None = None
    specifications: tuple[Specification, ...] = ()
    stock_quantity: int = 0
    rating: float = 0.0
    feed_index: int = 0
    synthetic: bool = False
    normalized_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
