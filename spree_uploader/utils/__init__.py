"""Пакет утилит и вспомогательных инструментов.

    from spree_uploader.utils import retry_call, slugify
"""

from spree_uploader.utils.retry import linear_delay, retry_call
from spree_uploader.utils.slug import product_slug, slugify

__all__ = [
    "linear_delay",
    "product_slug",
    "retry_call",
    "slugify",
]
