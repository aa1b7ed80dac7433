"""Email notifications for todo events.

This package provides the notification pipeline:
- TodoNotificationService: Orchestrates render, resolve and send
- TemplateRenderer: Jinja2-based subject and body rendering
- MailTransport: Delivery capability (SMTPTransport, InMemoryTransport)
- Recipient resolution helpers
"""

from .models import (
    MailDeliveryError,
    MailMessage,
    NotificationError,
    NotificationEvent,
    NotificationTemplateError,
    RecipientResolutionError,
    RenderedMessage,
)
from .recipients import Addressing, resolve_addressing, resolve_recipient
from .service import TodoNotificationService
from .templates import TemplateRenderer
from .transport import (
    InMemoryTransport,
    MailTransport,
    SMTPTransport,
    build_sender_address,
    normalize_addresses,
)

__all__ = [
    # Main service
    "TodoNotificationService",
    # Models
    "MailMessage",
    "NotificationEvent",
    "RenderedMessage",
    "Addressing",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "RecipientResolutionError",
    "MailDeliveryError",
    # Components
    "TemplateRenderer",
    "MailTransport",
    "SMTPTransport",
    "InMemoryTransport",
    # Utilities
    "resolve_recipient",
    "resolve_addressing",
    "build_sender_address",
    "normalize_addresses",
]
