"""Message rendering for todo notifications using Jinja2.

Each notification event maps to one body template under
``todoapp/notifications/email_templates``. Created notifications are plain
text; every other event renders HTML from a shared layout. Rendering is pure:
the same inputs always produce byte-identical output.
"""

import logging
from typing import Dict, Optional, Sequence

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from todoapp.domain.models import Person, Todo

from .models import NotificationEvent, NotificationTemplateError, RenderedMessage
from .payloads import (
    NO_DESCRIPTION_PROVIDED,
    NO_DUE_DATE_SET,
    build_summary_context,
    build_todo_context,
)

logger = logging.getLogger(__name__)

# event -> (body template, is html)
BODY_TEMPLATES: Dict[NotificationEvent, tuple] = {
    NotificationEvent.CREATED: ("todo_created.txt.j2", False),
    NotificationEvent.ASSIGNED: ("todo_assigned.html.j2", True),
    NotificationEvent.COMPLETED: ("todo_completed.html.j2", True),
    NotificationEvent.DUE_SOON: ("todo_due_soon.html.j2", True),
    NotificationEvent.DAILY_SUMMARY: ("daily_summary.html.j2", True),
}


class TemplateRenderer:
    """Renders subject and body for each notification event.

    Templates are loaded through a PackageLoader and cached by Jinja2 after
    first use. HTML templates are auto-escaped; the plain text template is not.
    """

    def __init__(self, template_dir: str = "email_templates"):
        """
        Args:
            template_dir: Directory name within the todoapp.notifications package
        """
        self.env = Environment(
            loader=PackageLoader("todoapp.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_created(self, todo: Todo, recipient: Person) -> RenderedMessage:
        context = build_todo_context(todo, recipient)
        return self._render(
            NotificationEvent.CREATED, f"New Task Created: {todo.title}", context
        )

    def render_assigned(self, todo: Todo, assignee: Person) -> RenderedMessage:
        context = build_todo_context(
            todo,
            assignee,
            description_placeholder=NO_DESCRIPTION_PROVIDED,
            due_date_placeholder=NO_DUE_DATE_SET,
        )
        return self._render(
            NotificationEvent.ASSIGNED, f"Task Assigned to You: {todo.title}", context
        )

    def render_completed(self, todo: Todo, recipient: Person) -> RenderedMessage:
        context = build_todo_context(todo, recipient)
        return self._render(
            NotificationEvent.COMPLETED, f"Task Completed: {todo.title}", context
        )

    def render_due_soon(self, todo: Todo, recipient: Person) -> RenderedMessage:
        context = build_todo_context(todo, recipient)
        return self._render(
            NotificationEvent.DUE_SOON, f"⚠️ Reminder: Task Due Soon - {todo.title}", context
        )

    def render_daily_summary(self, person: Person, todos: Sequence[Todo]) -> RenderedMessage:
        context = build_summary_context(person, todos)
        subject = (
            f"Daily Todo Summary - {context['total_count']} Tasks "
            f"({context['pending_count']} Pending)"
        )
        return self._render(NotificationEvent.DAILY_SUMMARY, subject, context)

    def render(
        self,
        event: NotificationEvent,
        person: Person,
        todo: Optional[Todo] = None,
        todos: Optional[Sequence[Todo]] = None,
    ) -> RenderedMessage:
        """Render any event.

        Args:
            event: Which notification to render
            person: Recipient
            todo: Triggering todo (all events except DAILY_SUMMARY)
            todos: Ordered todos (DAILY_SUMMARY only)

        Raises:
            ValueError: If the entities required by the event are missing
            NotificationTemplateError: If the template fails to render
        """
        event = NotificationEvent(event)
        if event is NotificationEvent.DAILY_SUMMARY:
            return self.render_daily_summary(person, todos)

        if todo is None:
            raise ValueError(f"{event.value} notifications require a todo")

        renderers = {
            NotificationEvent.CREATED: self.render_created,
            NotificationEvent.ASSIGNED: self.render_assigned,
            NotificationEvent.COMPLETED: self.render_completed,
            NotificationEvent.DUE_SOON: self.render_due_soon,
        }
        return renderers[event](todo, person)

    def _render(self, event: NotificationEvent, subject: str, context: Dict) -> RenderedMessage:
        template_name, is_html = BODY_TEMPLATES[event]
        try:
            body = self.env.get_template(template_name).render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for {template_name}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

        # Header-safe: a single line
        subject = " ".join(subject.split())

        logger.debug(f"Rendered {event.value} notification: {subject}")
        return RenderedMessage(subject=subject, body=body, html=is_html)
