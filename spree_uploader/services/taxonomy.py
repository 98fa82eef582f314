"""Выбор таксонов (категорий) для товара.

Плоский вариант — до двух ключевых слов, которые драйвер ищет
в списке таксонов. Иерархический вариант — путь категории,
который сопоставляется с "хлебными крошками" дерева таксонов
по совпадению хвоста пути, а не по вхождению подстроки.
"""

from collections.abc import Sequence

from spree_uploader.models import TaxonPath

MAX_TAXON_KEYWORDS: int = 2
DEFAULT_TAXON_KEYWORDS: tuple[str, ...] = ("General", "Product")


def select_taxon_keywords(keywords: Sequence[str]) -> tuple[str, ...]:
    """Берёт не более двух первых ключевых слов, дополняя значениями по умолчанию.

    Args:
        keywords: Ключевые слова категорий из фида.

    Returns:
        Ровно два ключевых слова.

    Пример:
        select_taxon_keywords(["Shoes"]) == ("Shoes", "General")
    """
    selected = [k.strip() for k in keywords if k and k.strip()][:MAX_TAXON_KEYWORDS]
    for default in DEFAULT_TAXON_KEYWORDS:
        if len(selected) >= MAX_TAXON_KEYWORDS:
            break
        selected.append(default)
    return tuple(selected)


def _fold(segment: str) -> str:
    return " ".join(segment.split()).casefold()


def path_ends_with(candidate: TaxonPath, target: TaxonPath) -> bool:
    """Проверяет, что последние сегменты candidate совпадают с target по порядку.

    Сравнение без учёта регистра и лишних пробелов.
    """
    if not target.parts or len(candidate.parts) < len(target.parts):
        return False
    tail = candidate.parts[-len(target.parts):]
    return all(_fold(a) == _fold(b) for a, b in zip(tail, target.parts))


def _as_path(candidate: TaxonPath | str) -> TaxonPath | None:
    return candidate if isinstance(candidate, TaxonPath) else TaxonPath.parse(candidate)


def match_taxon_index(
    candidates: Sequence[TaxonPath | str],
    target: TaxonPath,
) -> int | None:
    """Позиция первого пути, заканчивающегося целевым путём, или None."""
    for index, candidate in enumerate(candidates):
        path = _as_path(candidate)
        if path is not None and path_ends_with(path, target):
            return index
    return None


def match_taxon(
    candidates: Sequence[TaxonPath | str],
    target: TaxonPath,
) -> TaxonPath | None:
    """Находит в дереве таксонов путь, заканчивающийся целевым путём.

    Args:
        candidates: Пути таксонов админки (объекты или строки
            "Categories -> Cosmetics -> Hair Care -> Combs").
        target: Искомый путь категории.

    Returns:
        Первый подходящий путь или None.
    """
    index = match_taxon_index(candidates, target)
    return None if index is None else _as_path(candidates[index])
