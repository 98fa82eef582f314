"""Пакет конфигурации приложения.

Предоставляет централизованный доступ к настройкам и логированию:
    from spree_uploader.config import load_settings, get_logger, setup_logging
"""

from spree_uploader.config.logger import (
    get_feed_name,
    get_logger,
    get_run_id,
    set_feed_name,
    set_run_id,
    setup_logging,
)
from spree_uploader.config.settings import (
    AdminSettings,
    BrowserSettings,
    ConfigValidationError,
    DatabaseSettings,
    FeedSettings,
    LogSettings,
    MediaSettings,
    ReportSettings,
    Settings,
    load_settings,
)

__all__ = [
    "AdminSettings",
    "BrowserSettings",
    "ConfigValidationError",
    "DatabaseSettings",
    "FeedSettings",
    "LogSettings",
    "MediaSettings",
    "ReportSettings",
    "Settings",
    "get_feed_name",
    "get_logger",
    "get_run_id",
    "load_settings",
    "set_feed_name",
    "set_run_id",
    "setup_logging",
]
