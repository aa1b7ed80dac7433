"""Environment variable loading and validation."""

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .models import SMTPSettings

DEFAULT_DATABASE_URL = "sqlite:///./data/todo_app.db"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig(BaseModel):
    """Settings sourced from the process environment.

    ``smtp`` is None when SMTP was not required (for example a dry run using
    the in-memory transport) and SMTP_HOST is unset.
    """

    smtp: Optional[SMTPSettings] = Field(None, description="SMTP transport settings")
    log_level: Optional[str] = Field(None, description="Log level override")
    database_url: str = Field(DEFAULT_DATABASE_URL, description="SQLAlchemy database URL")

    model_config = {"frozen": True}


def load_environment_config(
    environ: Optional[Mapping[str, str]] = None,
    require_smtp: bool = True,
) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    SMTP variables:
    - SMTP_HOST: SMTP server hostname (required when require_smtp)
    - SMTP_PORT: SMTP server port (default 587)
    - SMTP_USER / SMTP_PASS: credentials
    - SMTP_STARTTLS: upgrade with STARTTLS (default true)
    - SMTP_AUTH: authentication required (default true)
    - MAIL_FROM_ADDRESS: sender address (required when require_smtp)
    - MAIL_FROM_NAME: sender display name (default "Todo App")

    Other variables:
    - LOG_LEVEL: Override log level
    - DATABASE_URL: SQLAlchemy URL (default sqlite:///./data/todo_app.db)

    Args:
        environ: Mapping to read from (defaults to os.environ)
        require_smtp: Whether missing SMTP settings are an error

    Returns:
        EnvironmentConfig with validated values

    Raises:
        ConfigurationError: If any variable is missing or invalid
    """
    env = os.environ if environ is None else environ
    errors: List[str] = []

    smtp_host = _get(env, "SMTP_HOST")
    from_address = _get(env, "MAIL_FROM_ADDRESS")

    smtp_port = 587
    port_str = _get(env, "SMTP_PORT")
    if port_str:
        try:
            smtp_port = int(port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{port_str}'. Must be a valid integer.")

    starttls = _parse_bool(env, "SMTP_STARTTLS", True, errors)
    auth_required = _parse_bool(env, "SMTP_AUTH", True, errors)

    log_level = _get(env, "LOG_LEVEL")
    if log_level and log_level.upper() not in _LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(_LOG_LEVELS)}"
        )

    smtp_wanted = require_smtp or smtp_host is not None
    if smtp_wanted:
        if not smtp_host:
            errors.append("Missing required environment variable: SMTP_HOST")
        if not from_address:
            errors.append("Missing required environment variable: MAIL_FROM_ADDRESS")

    smtp_settings = None
    if smtp_wanted and not errors:
        try:
            smtp_settings = SMTPSettings(
                host=smtp_host,
                port=smtp_port,
                username=_get(env, "SMTP_USER"),
                password=_get(env, "SMTP_PASS"),
                starttls=starttls,
                auth_required=auth_required,
                from_address=from_address,
                from_name=_get(env, "MAIL_FROM_NAME") or "Todo App",
            )
        except ValidationError as e:
            for error in e.errors():
                errors.append(error["msg"].removeprefix("Value error, "))

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your SMTP credentials",
                "Set SMTP_AUTH=false for relays that do not require a login",
                "Use --dry-run to render notifications without an SMTP server",
            ],
        )

    return EnvironmentConfig(
        smtp=smtp_settings,
        log_level=log_level.upper() if log_level else None,
        database_url=_get(env, "DATABASE_URL") or DEFAULT_DATABASE_URL,
    )


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    """Read a variable, treating blank values as unset."""
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_bool(env: Mapping[str, str], name: str, default: bool, errors: List[str]) -> bool:
    raw = _get(env, name)
    if raw is None:
        return default
    if raw.lower() in _TRUE_VALUES:
        return True
    if raw.lower() in _FALSE_VALUES:
        return False
    errors.append(f"Invalid {name}: '{raw}'. Use true/false.")
    return default
