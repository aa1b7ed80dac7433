"""Data models and exceptions for the notification pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a template is missing or fails to render."""

    pass


class RecipientResolutionError(NotificationError, ValueError):
    """Raised when a notification has no usable recipient address."""

    pass


class MailDeliveryError(NotificationError):
    """Raised inside a transport when delivery fails.

    Transports convert this to a False result; it never reaches callers of
    MailTransport.send().
    """

    pass


class NotificationEvent(str, Enum):
    """Domain events that produce an email."""

    CREATED = "created"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    DUE_SOON = "due_soon"
    DAILY_SUMMARY = "daily_summary"


@dataclass(frozen=True)
class RenderedMessage:
    """Subject and body produced by the renderer for one event."""

    subject: str
    body: str
    html: bool


@dataclass
class MailMessage:
    """A fully composed message handed to a MailTransport.

    Attributes:
        to: Primary recipient address
        subject: Subject line
        body: Plain text or HTML body, depending on ``html``
        html: Whether ``body`` is HTML
        cc: Carbon-copy addresses, visible to all recipients
        bcc: Blind-copy addresses, delivered but not listed in headers
        attachment_path: Optional file to attach alongside the body
    """

    to: str
    subject: str
    body: str
    html: bool = False
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    attachment_path: Optional[Path] = None

    def __post_init__(self):
        if not self.to or not self.to.strip():
            raise ValueError("MailMessage requires a non-empty 'to' address")
        self.to = self.to.strip()
        if self.attachment_path is not None:
            self.attachment_path = Path(self.attachment_path)

    @property
    def all_recipients(self) -> List[str]:
        """Every envelope recipient: to, then cc, then bcc."""
        return [self.to, *self.cc, *self.bcc]
