"""Notification service for todo events.

TodoNotificationService turns a domain event into an email: it renders the
message, resolves the recipient and hands the result to a MailTransport. One
delivery attempt is made per call. Delivery failure is reported as False and
never interrupts the operation that triggered the notification.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from todoapp.domain.models import Person, Todo
from todoapp.logging import get_logger
from todoapp.logging.context import log_context

from .models import MailMessage, NotificationEvent, RenderedMessage
from .recipients import resolve_addressing, resolve_recipient
from .templates import TemplateRenderer
from .transport import MailTransport

logger = get_logger(__name__, component="notification")


class TodoNotificationService:
    """Sends todo lifecycle and reminder notifications.

    Programming errors (missing todo or person, blank email address) raise
    ValueError before anything is sent. Transport problems are logged and
    returned as False.
    """

    def __init__(
        self,
        transport: MailTransport,
        renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.LoggerAdapter] = None,
    ):
        """
        Args:
            transport: Transport used for every delivery
            renderer: Template renderer (creates default if None)
            logger_instance: Logger (uses module logger if None)
        """
        if transport is None:
            raise ValueError("TodoNotificationService requires a transport")
        self.transport = transport
        self.renderer = renderer or TemplateRenderer()
        self.logger = logger_instance or logger

    def notify_created(self, todo: Todo, recipient: Person) -> bool:
        """Send the plain text "new task" notification."""
        return self._notify(NotificationEvent.CREATED, recipient, todo=todo)

    def notify_assigned(self, todo: Todo, assignee: Person) -> bool:
        """Tell ``assignee`` a todo has been assigned to them."""
        return self._notify(NotificationEvent.ASSIGNED, assignee, todo=todo)

    def notify_completed(self, todo: Todo, recipient: Person) -> bool:
        return self._notify(NotificationEvent.COMPLETED, recipient, todo=todo)

    def send_due_date_reminder(self, todo: Todo, recipient: Person) -> bool:
        """Send a due-soon warning.

        Whether the todo is actually due soon is the caller's decision; this
        method renders and sends unconditionally.
        """
        return self._notify(NotificationEvent.DUE_SOON, recipient, todo=todo)

    def send_daily_summary(self, person: Person, todos: Sequence[Todo]) -> bool:
        """Send one summary of ``todos`` to ``person``.

        Args:
            person: Recipient of the summary
            todos: Todos to list, rendered in the given order

        Returns:
            True if the transport accepted the message
        """
        return self._notify(NotificationEvent.DAILY_SUMMARY, person, todos=todos)

    def send_email(self, message: MailMessage) -> bool:
        """Send a pre-composed message, including CC, BCC and attachment.

        Args:
            message: Fully addressed message

        Returns:
            True if the transport accepted the message
        """
        if message is None:
            raise ValueError("send_email requires a message")

        with log_context(notification_event="custom", recipient=message.to):
            return self._deliver(message)

    def email_person(
        self,
        person: Person,
        subject: str,
        body: str,
        html: bool = False,
        cc: Optional[Iterable[str]] = None,
        bcc: Optional[Iterable[str]] = None,
        attachment_path: Optional[Union[str, Path]] = None,
    ) -> bool:
        """Address a free-form message to ``person`` and send it.

        Copy lists are cleaned by resolve_addressing before sending.
        """
        addressing = resolve_addressing(person, cc=cc, bcc=bcc)
        message = MailMessage(
            to=addressing.to,
            subject=subject,
            body=body,
            html=html,
            cc=addressing.cc,
            bcc=addressing.bcc,
            attachment_path=attachment_path,
        )
        return self.send_email(message)

    def _notify(
        self,
        event: NotificationEvent,
        person: Optional[Person],
        todo: Optional[Todo] = None,
        todos: Optional[Sequence[Todo]] = None,
    ) -> bool:
        if person is None:
            raise ValueError(f"{event.value} notification requires a recipient")
        if event is not NotificationEvent.DAILY_SUMMARY and todo is None:
            raise ValueError(f"{event.value} notification requires a todo")

        recipient = resolve_recipient(person)
        todo_id = todo.id if todo is not None else None

        with log_context(notification_event=event.value, todo_id=todo_id, recipient=recipient):
            rendered = self.renderer.render(event, person, todo=todo, todos=todos)
            return self._deliver(self._compose(recipient, rendered))

    @staticmethod
    def _compose(recipient: str, rendered: RenderedMessage) -> MailMessage:
        return MailMessage(
            to=recipient,
            subject=rendered.subject,
            body=rendered.body,
            html=rendered.html,
        )

    def _deliver(self, message: MailMessage) -> bool:
        sent = self.transport.send(message)

        if sent:
            self.logger.info(
                f"Notification sent to {message.to}: {message.subject}",
                extra={"event": "notification.send.success"},
            )
        else:
            self.logger.warning(
                f"Notification to {message.to} was not delivered: {message.subject}",
                extra={"event": "notification.send.failure"},
            )
        return sent
