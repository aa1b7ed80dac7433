"""Mail transports.

MailTransport is the capability the notification service depends on. Every
implementation reports the outcome of a send as a bool and never raises for
delivery problems: connection refusal, authentication failure, malformed
addresses and unreadable attachments are logged and returned as False.

Empty recipients are programming errors and raise ValueError when the
MailMessage is built.
"""

import mimetypes
import smtplib
import ssl
import threading
from abc import ABC, abstractmethod
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from typing import Callable, Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email

from todoapp.config.models import SMTPSettings
from todoapp.logging import get_logger

from .models import MailDeliveryError, MailMessage

logger = get_logger(__name__, component="transport")


class MailTransport(ABC):
    """Delivers composed messages over some mail protocol."""

    def send_plain(self, to: str, subject: str, body: str) -> bool:
        """Send a plain text message to a single recipient."""
        return self.send(MailMessage(to=to, subject=subject, body=body, html=False))

    def send_html(self, to: str, subject: str, html_body: str) -> bool:
        """Send an HTML message to a single recipient."""
        return self.send(MailMessage(to=to, subject=subject, body=html_body, html=True))

    @abstractmethod
    def send(self, message: MailMessage) -> bool:
        """Attempt delivery of ``message``.

        Returns:
            True if the message was accepted for delivery, False otherwise
        """


class SMTPTransport(MailTransport):
    """Transport backed by smtplib.

    Opens one connection per send, so a single instance can be shared by
    concurrent callers. CC and BCC recipients share one message: ``To`` and
    ``Cc`` appear in the headers, BCC addresses only in the SMTP envelope.
    """

    def __init__(
        self,
        settings: SMTPSettings,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """
        Args:
            settings: Frozen SMTP connection and sender settings
            smtp_factory: Factory for plain SMTP connections (for mocking)
            smtp_ssl_factory: Factory for implicit-TLS connections (for mocking)
        """
        self.settings = settings
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, message: MailMessage) -> bool:
        try:
            email_message = self.build_message(message)
            recipients = normalize_addresses(message.all_recipients)
            self._deliver(email_message, recipients)
        except MailDeliveryError as e:
            logger.error(
                f"Failed to send email to {message.to}: {e}",
                extra={
                    "event": "transport.smtp.failure",
                    "recipient": message.to,
                    "error_type": type(e.__cause__ or e).__name__,
                },
            )
            return False

        logger.info(
            f"Email sent successfully to {message.to}",
            extra={
                "event": "transport.smtp.sent",
                "recipient": message.to,
                "cc_count": len(message.cc),
                "bcc_count": len(message.bcc),
                "html": message.html,
                "has_attachment": message.attachment_path is not None,
            },
        )
        return True

    def build_message(self, message: MailMessage) -> EmailMessage:
        """Compose the MIME message.

        The attachment is read here, before any connection is opened, so an
        unreadable file fails the send without delivering anything.

        Raises:
            MailDeliveryError: If an address is invalid or the attachment cannot be read
        """
        to = normalize_addresses([message.to])
        cc = normalize_addresses(message.cc)

        email_message = EmailMessage()
        try:
            email_message["Subject"] = message.subject
            email_message["From"] = build_sender_address(self.settings)
            email_message["To"] = ", ".join(to)
            if cc:
                email_message["Cc"] = ", ".join(cc)
            email_message["Date"] = formatdate(usegmt=True)
            email_message["Message-ID"] = make_msgid(
                domain=self.settings.from_address.split("@")[-1]
            )

            if message.html:
                email_message.set_content(message.body, subtype="html")
            else:
                email_message.set_content(message.body)
        except ValueError as e:
            # e.g. a subject containing a line break
            raise MailDeliveryError(f"Malformed message headers: {e}") from e

        if message.attachment_path is not None:
            path = message.attachment_path
            try:
                data = path.read_bytes()
            except OSError as e:
                raise MailDeliveryError(f"Failed to attach file: {path}") from e

            content_type, encoding = mimetypes.guess_type(path.name)
            if content_type is None or encoding is not None:
                content_type = "application/octet-stream"
            maintype, subtype = content_type.split("/", 1)
            email_message.add_attachment(
                data, maintype=maintype, subtype=subtype, filename=path.name
            )

        return email_message

    def _deliver(self, email_message: EmailMessage, recipients: List[str]) -> None:
        """Run the SMTP conversation, always closing the connection.

        Raises:
            MailDeliveryError: On any SMTP, network or unexpected error
        """
        settings = self.settings
        smtp = None
        try:
            if settings.implicit_tls:
                logger.debug(f"Connecting to {settings.host}:{settings.port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    settings.host,
                    settings.port,
                    context=ssl.create_default_context(),
                    timeout=settings.timeout,
                )
            else:
                logger.debug(f"Connecting to {settings.host}:{settings.port}")
                smtp = self.smtp_factory(settings.host, settings.port, timeout=settings.timeout)
                if settings.starttls:
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())

            if settings.auth_required:
                logger.debug(f"Authenticating as {settings.username}")
                smtp.login(settings.username, settings.password)

            smtp.send_message(email_message, to_addrs=recipients)

        except smtplib.SMTPException as e:
            raise MailDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise MailDeliveryError(f"Network error during SMTP connection: {e}") from e
        except Exception as e:
            raise MailDeliveryError(f"Unexpected error during SMTP delivery: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


class InMemoryTransport(MailTransport):
    """Deterministic transport that records messages instead of sending them.

    Attributes:
        sent: Messages accepted so far, in send order
        attempts: Number of send() calls, including failed ones
        fail: When True every send returns False, like an unreachable server
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[MailMessage] = []
        self.attempts = 0
        self._lock = threading.Lock()

    def send(self, message: MailMessage) -> bool:
        with self._lock:
            self.attempts += 1

            if self.fail:
                logger.warning(
                    f"In-memory transport rejected message to {message.to}",
                    extra={"event": "transport.memory.rejected", "recipient": message.to},
                )
                return False

            try:
                normalize_addresses(message.all_recipients)
            except MailDeliveryError as e:
                logger.error(
                    f"Failed to send email to {message.to}: {e}",
                    extra={"event": "transport.memory.failure", "recipient": message.to},
                )
                return False

            if message.attachment_path is not None and not message.attachment_path.is_file():
                logger.error(
                    f"Failed to attach file: {message.attachment_path}",
                    extra={"event": "transport.memory.failure", "recipient": message.to},
                )
                return False

            self.sent.append(message)

        logger.info(
            f"Captured email to {message.to}: {message.subject}",
            extra={"event": "transport.memory.captured", "recipient": message.to},
        )
        return True

    @property
    def last(self) -> Optional[MailMessage]:
        """Most recently captured message, or None."""
        return self.sent[-1] if self.sent else None

    def clear(self) -> None:
        with self._lock:
            self.sent.clear()
            self.attempts = 0


def normalize_addresses(addresses: Iterable[str]) -> List[str]:
    """Validate and normalise email addresses with email-validator.

    Raises:
        MailDeliveryError: If any address is malformed
    """
    normalized = []
    for address in addresses:
        try:
            normalized.append(validate_email(address, check_deliverability=False).normalized)
        except EmailNotValidError as e:
            raise MailDeliveryError(f"Invalid email address '{address}': {e}") from e
    return normalized


def build_sender_address(settings: SMTPSettings) -> str:
    """Format the From header, e.g. ``Todo App <noreply@todoapp.com>``."""
    return formataddr((settings.from_name, settings.from_address))
