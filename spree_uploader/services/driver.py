"""Абстрактный драйвер отправки товара в админку.

Определяет контракт, которому следует любая реализация отправки
(Playwright-драйвер Spree, тестовые заглушки). UploadService
зависит от этой абстракции, а не от браузера.
"""

from abc import ABC, abstractmethod

from spree_uploader.models import NormalizedProduct, SubmissionOutcome


class SubmissionError(Exception):
    """Ошибка при отправке товара в админку."""


class LoginError(SubmissionError):
    """Не удалось войти в админ-панель."""


class NavigationError(SubmissionError):
    """Страница админки не открылась после всех попыток."""


class DuplicateSkuError(SubmissionError):
    """Админка отклонила товар: SKU уже используется.

    Attributes:
        sku: Конфликтующий артикул.
    """

    def __init__(self, sku: str) -> None:
        super().__init__(f"SKU '{sku}' уже используется")
        self.sku = sku


class SubmissionDriver(ABC):
    """Отправляет нормализованные товары в админку по одному."""

    @abstractmethod
    async def start(self) -> None:
        """Готовит сессию (запуск браузера, вход в админку)."""

    @abstractmethod
    async def submit(self, product: NormalizedProduct) -> SubmissionOutcome:
        """Создаёт или обновляет товар.

        Args:
            product: Товар после нормализации.

        Returns:
            Итог отправки и URL товара.
        """

    @abstractmethod
    async def close(self) -> None:
        """Освобождает ресурсы сессии."""
