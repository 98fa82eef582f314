"""Модели результатов загрузки товаров в админку.

    - SubmissionStatus: итог отправки одного товара
    - SubmissionOutcome: ответ драйвера админки на один товар
    - UploadResult: запись журнала загрузки (товар + итог)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SubmissionStatus(str, Enum):
    """Итог отправки товара в админку."""

    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"

    @property
    def is_success(self) -> bool:
        return self is not SubmissionStatus.FAILED


@dataclass(frozen=True)
class SubmissionOutcome:
    """Результат работы драйвера для одного товара.

    Attributes:
        status: created / updated / failed.
        resource_url: Публичный URL товара на витрине (None при ошибке).
        error: Текст ошибки для статуса failed.
    """

    status: SubmissionStatus
    resource_url: str | None = None
    error: str = ""

    @classmethod
    def failed(cls, error: str) -> "SubmissionOutcome":
        return cls(status=SubmissionStatus.FAILED, error=error)


@dataclass(frozen=True)
class UploadResult:
    """Строка журнала загрузки.

    Attributes:
        feed_index: Позиция товара в фиде.
        sku: Артикул товара.
        product_name: Название товара.
        source_url: Ссылка на товар у поставщика.
        destination_url: URL созданного/обновлённого товара.
        status: Итог отправки.
        error: Текст ошибки (для failed).
        created_at: Время записи (UTC).
    """

    feed_index: int
    sku: str
    product_name: str
    source_url: str
    destination_url: str | None
    status: SubmissionStatus
    error: str = ""
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_report_entry(self) -> dict[str, Any]:
        """Представление для JSON-отчёта."""
        return {
            "productName": self.product_name,
            "sourceUrl": self.source_url,
            "destinationUrl": self.destination_url,
            "status": self.status.value,
        }
