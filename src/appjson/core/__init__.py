"""Core primitives: errors, structured logging and settings."""

from appjson.core.errors import (
    AppJsonError,
    CollaboratorError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
)
from appjson.core.logging import LogContext, configure_logging, get_logger
from appjson.core.settings import AppJsonSettings, get_settings

__all__ = [
    "AppJsonError",
    "AppJsonSettings",
    "CollaboratorError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "LogContext",
    "configure_logging",
    "get_logger",
    "get_settings",
]
