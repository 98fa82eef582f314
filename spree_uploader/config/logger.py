"""Модуль структурированного JSON-логирования.

Предоставляет фабрику логгеров с JSON-форматированием,
идентификатором запуска (run_id), которым помечаются все записи
одной загрузки фида, и контекстными полями для каждого сообщения.

Пример использования:
    logger = get_logger("upload_service")
    logger.info("product_submitted", sku="TEST42", status="created")
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


# Идентификатор текущего запуска загрузки.
_run_id_var: ContextVar[str] = ContextVar("run_id", default="")
# Имя фида, который загружается в текущем контексте.
_feed_name_var: ContextVar[str] = ContextVar("feed_name", default="")


def set_run_id(run_id: str | None = None) -> str:
    """Устанавливает run_id для текущего контекста выполнения.

    Args:
        run_id: Идентификатор запуска. Если None — генерируется
            автоматически (первые 8 символов UUID4).

    Returns:
        Установленный run_id.
    """
    if run_id is None:
        run_id = uuid.uuid4().hex[:8]
    _run_id_var.set(run_id)
    return run_id


def get_run_id() -> str:
    """Возвращает run_id текущего контекста (пустая строка, если не задан)."""
    return _run_id_var.get()


def set_feed_name(feed_name: str) -> None:
    """Привязывает имя фида к записям логов текущего контекста."""
    _feed_name_var.set(feed_name)


def get_feed_name() -> str:
    return _feed_name_var.get()


class JSONFormatter(logging.Formatter):
    """Форматирует лог-записи в одну JSON-строку.

    Поля записи: timestamp (ISO 8601, UTC), level, message, run_id,
    feed (имя фида, если задано), logger и context — keyword-аргументы,
    переданные в ContextLogger, плюс тип и текст исключения, если оно приложено.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "run_id": get_run_id(),
            "logger": record.name,
        }

        feed_name = get_feed_name()
        if feed_name:
            log_entry["feed"] = feed_name

        context: dict[str, Any] = dict(getattr(record, "context_data", {}) or {})

        if record.exc_info and record.exc_info[1] is not None:
            context["exception_type"] = type(record.exc_info[1]).__name__
            context["exception_message"] = str(record.exc_info[1])

        if context:
            log_entry["context"] = context

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ContextLogger:
    """Обёртка над стандартным логгером с контекстными полями.

    Произвольные keyword-аргументы методов логирования попадают
    в поле context JSON-вывода.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        extra: dict[str, Any] = {"context_data": kwargs}
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def critical(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, exc_info=exc_info, **kwargs)

    @property
    def name(self) -> str:
        return self._logger.name


# Реестр созданных логгеров — повторный get_logger возвращает тот же объект.
_loggers: dict[str, ContextLogger] = {}


def setup_logging(level: str = "INFO", log_file_path: str = "") -> None:
    """Настраивает корневой логгер: JSON в stdout и, опционально, в файл.

    Повторный вызов заменяет ранее установленные хендлеры.

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file_path: Путь к файлу логов. Пустая строка — только консоль.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    json_formatter = JSONFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(json_formatter)
    root_logger.addHandler(console_handler)

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(json_formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> ContextLogger:
    """Возвращает именованный ContextLogger (один экземпляр на имя).

    Args:
        name: Имя логгера, обычно имя модуля ('feed_service', 'admin_service').

    Пример:
        logger = get_logger("feed_service")
        logger.info("feed_loaded", records=120)
        # {"timestamp": "...", "level": "INFO", "message": "feed_loaded",
        #  "run_id": "a1b2c3d4", "logger": "feed_service",
        #  "context": {"records": 120}}
    """
    if name not in _loggers:
        _loggers[name] = ContextLogger(logging.getLogger(name))
    return _loggers[name]
