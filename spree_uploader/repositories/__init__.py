"""Пакет репозиториев для хранения журнала загрузок.

    from spree_uploader.repositories import BaseUploadRepository, SQLiteUploadRepository
"""

from spree_uploader.repositories.base import BaseUploadRepository
from spree_uploader.repositories.sqlite_repository import SQLiteUploadRepository

__all__ = [
    "BaseUploadRepository",
    "SQLiteUploadRepository",
]
