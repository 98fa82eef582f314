"""Построение URL-slug товара.

Транслитерирует турецкие буквы в латиницу, убирает "%100"
из названий вида "%100 Pamuk" и сводит всё остальное
к нижнему регистру и дефисам.
"""

import re

TURKISH_TRANSLITERATION: dict[str, str] = {
    "ğ": "g",
    "Ğ": "g",
    "ü": "u",
    "Ü": "u",
    "ş": "s",
    "Ş": "s",
    "ı": "i",
    "İ": "i",
    "ö": "o",
    "Ö": "o",
    "ç": "c",
    "Ç": "c",
}

_TRANSLATION_TABLE = str.maketrans(TURKISH_TRANSLITERATION)
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Преобразует произвольную строку в URL-сегмент.

    Чистая функция: одинаковый вход всегда даёт одинаковый slug.

    Args:
        text: Исходная строка (название, название + SKU).

    Returns:
        Строка из [a-z0-9] и одиночных дефисов без дефисов по краям.

    Пример:
        slugify("Saç Fırçası") == "sac-fircasi"
        slugify("%100 Pamuk Ürün!!") == "100-pamuk-urun"
    """
    value = text.translate(_TRANSLATION_TABLE)
    value = value.replace("%100", "100")
    value = value.lower()
    value = _NON_SLUG_CHARS.sub("-", value)
    return value.strip("-")


def product_slug(title: str, sku: str) -> str:
    """Slug товара из названия и артикула."""
    return slugify(f"{title} {sku}")
