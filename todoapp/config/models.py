"""Configuration schema models using Pydantic."""

from datetime import time
from enum import Enum
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, parse_time_of_day, validate_duration_range


class TransportType(str, Enum):
    """Mail transports the application can be wired with."""

    SMTP = "smtp"
    MEMORY = "memory"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SMTPSettings(BaseModel):
    """Connection and sender settings for the SMTP transport.

    Frozen: built once at startup and shared read-only by every send.
    """

    host: str = Field(..., min_length=1, description="SMTP server hostname")
    port: int = Field(587, ge=1, le=65535, description="SMTP server port")
    username: Optional[str] = Field(None, description="Login name when authentication is required")
    password: Optional[str] = Field(None, repr=False, description="Login password")
    starttls: bool = Field(True, description="Upgrade plain connections with STARTTLS")
    auth_required: bool = Field(True, description="Log in before sending")
    from_address: str = Field(..., description="Envelope and header sender address")
    from_name: str = Field("Todo App", min_length=1, description="Sender display name")
    timeout: float = Field(10.0, gt=0, le=300, description="Connect/read timeout in seconds")

    model_config = {"frozen": True}

    @field_validator("from_address")
    @classmethod
    def validate_from_address(cls, v: str) -> str:
        """Normalise the sender address with email-validator."""
        try:
            return validate_email(v.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValueError(f"Invalid sender address '{v}': {e}") from e

    @model_validator(mode="after")
    def check_credentials(self):
        """Authentication needs both a username and a password."""
        if self.auth_required and not (self.username and self.password):
            raise ValueError(
                "SMTP authentication is required but username or password is missing"
            )
        return self

    @property
    def implicit_tls(self) -> bool:
        """Port 465 speaks TLS from the first byte."""
        return self.port == 465


class EmailConfig(BaseModel):
    """Email delivery settings."""

    transport: TransportType = Field(
        TransportType.SMTP, description="Delivery transport (smtp or memory)"
    )
    timeout_seconds: float = Field(
        10.0, gt=0, le=300, description="SMTP connection and read timeout"
    )

    model_config = {"use_enum_values": True, "validate_default": True}


class ReminderConfig(BaseModel):
    """Due-date reminder and daily summary settings."""

    due_soon_window: str = Field("24h", description="How far ahead a due date counts as 'soon'")
    daily_summary_time: str = Field("08:00", description="Time of day (UTC) to send summaries")
    include_completed_in_summary: bool = Field(
        True, description="List completed todos in the daily summary"
    )

    # Computed fields
    due_soon_window_seconds: Optional[int] = None
    daily_summary_at: Optional[time] = None

    @field_validator("due_soon_window")
    @classmethod
    def validate_window(cls, v: str) -> str:
        """Window must parse and lie between 5 minutes and 7 days."""
        try:
            validate_duration_range(parse_duration(v), label="due_soon_window")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("daily_summary_time")
    @classmethod
    def validate_summary_time(cls, v: str) -> str:
        try:
            parse_time_of_day(v)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v.strip()

    @model_validator(mode="after")
    def compute_fields(self):
        self.due_soon_window_seconds = parse_duration(self.due_soon_window)
        self.daily_summary_at = parse_time_of_day(self.daily_summary_time)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True, "validate_default": True}


class AppConfig(BaseModel):
    """Root configuration object loaded from config.yaml.

    Every section has defaults, so an empty mapping is a valid configuration.
    """

    email: EmailConfig = Field(default_factory=EmailConfig, description="Email settings")
    reminders: ReminderConfig = Field(
        default_factory=ReminderConfig, description="Reminder scheduling"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
