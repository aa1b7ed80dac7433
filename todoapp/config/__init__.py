"""Configuration management for the todo notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config
from .models import (
    AppConfig,
    EmailConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ReminderConfig,
    SMTPSettings,
    TransportType,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "EmailConfig",
    "ReminderConfig",
    "LoggingConfig",
    "SMTPSettings",
    "EnvironmentConfig",
    # Enums
    "TransportType",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
