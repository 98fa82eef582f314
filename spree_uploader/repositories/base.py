"""Абстрактный репозиторий журнала загрузок.

Определяет контракт хранилища результатов загрузки. Журнал только
дополняется: каждая отправка товара — новая запись, существующие
записи не изменяются. Сервисы зависят от этой абстракции,
а не от конкретной реализации.
"""

from abc import ABC, abstractmethod

from spree_uploader.models import UploadResult


class BaseUploadRepository(ABC):
    """Абстрактный журнал запусков и результатов загрузки."""

    @abstractmethod
    def initialize(self) -> None:
        """Создаёт таблицы и индексы. Вызывается один раз при старте."""

    @abstractmethod
    def start_run(self, feed_name: str) -> int:
        """Регистрирует новый запуск загрузки фида.

        Args:
            feed_name: Имя фида (имя файла без расширения).

        Returns:
            Идентификатор запуска.
        """

    @abstractmethod
    def append_result(self, run_id: int, result: UploadResult) -> None:
        """Добавляет результат отправки одного товара в журнал.

        Args:
            run_id: Идентификатор запуска.
            result: Итог отправки товара.
        """

    @abstractmethod
    def get_run_results(self, run_id: int) -> list[UploadResult]:
        """Возвращает результаты запуска в порядке добавления."""

    @abstractmethod
    def get_last_feed_index(self, feed_name: str) -> int | None:
        """Максимальный индекс записи фида, уже отправленной в админку.

        Учитываются только успешные отправки (created/updated)
        во всех запусках данного фида.

        Returns:
            Индекс или None, если фид ещё не загружался.
        """

    @abstractmethod
    def close(self) -> None:
        """Закрывает соединение с хранилищем и освобождает ресурсы."""
