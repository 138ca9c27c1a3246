"""Configuration module for Localify."""

from .settings import (
    ApiSettings,
    DatabaseSettings,
    LoggingSettings,
    Settings,
    StorageSettings,
    StreamingSettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "Settings",
    "StorageSettings",
    "StreamingSettings",
    "get_settings",
]
