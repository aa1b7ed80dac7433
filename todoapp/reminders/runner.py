"""Batch reminder runs over the stored todos."""

import threading
from datetime import datetime, timedelta
from typing import Callable, ContextManager, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from todoapp.config.models import ReminderConfig
from todoapp.logging import get_logger
from todoapp.logging.context import log_context
from todoapp.notifications.service import TodoNotificationService
from todoapp.persistence.database import get_session
from todoapp.persistence.exceptions import RecordNotFoundError
from todoapp.persistence.repositories import PersonRepository, TodoRepository
from todoapp.utils.timestamps import utc_now

from .models import ReminderRunResult

logger = get_logger(__name__, component="reminders")


class ReminderRunner:
    """
    Sends daily summaries and due-date reminders for everything in the database.

    Each run opens its own session. Runs of the same kind never overlap; a run
    started while another is in progress is skipped.
    """

    def __init__(
        self,
        notifier: TodoNotificationService,
        reminder_config: Optional[ReminderConfig] = None,
        session_scope: Callable[[], ContextManager[Session]] = get_session,
    ):
        """
        Args:
            notifier: Service that renders and sends each email
            reminder_config: Window and summary settings (defaults if None)
            session_scope: Context manager factory yielding a session
        """
        self.notifier = notifier
        self.reminder_config = reminder_config or ReminderConfig()
        self.session_scope = session_scope
        self._summary_lock = threading.Lock()
        self._due_lock = threading.Lock()

    def run_daily_summaries(
        self,
        email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReminderRunResult:
        """Send one summary to every person with assigned todos.

        Args:
            email: Restrict the run to this person
            now: Reference time (defaults to current UTC time)

        Returns:
            ReminderRunResult; ``considered`` counts people examined

        Raises:
            RecordNotFoundError: If ``email`` is given and no such person exists
        """
        started = now or utc_now()
        if not self._summary_lock.acquire(blocking=False):
            return self._skipped("daily_summary", started)

        try:
            with log_context(run_id=uuid4().hex, reminder_run="daily_summary"):
                result = ReminderRunResult(
                    kind="daily_summary", run_started_at=started, run_finished_at=started
                )
                with self.session_scope() as session:
                    people_repo = PersonRepository(session)
                    todo_repo = TodoRepository(session)

                    if email:
                        person = people_repo.find_by_email(email)
                        if person is None:
                            raise RecordNotFoundError(f"No person with email {email}")
                        people = [person]
                    else:
                        people = people_repo.find_all()

                    for person in people:
                        result.considered += 1
                        if self.reminder_config.include_completed_in_summary:
                            todos = todo_repo.find_by_assigned_to(person)
                        else:
                            todos = todo_repo.find_by_completed_and_assigned_to(False, person)

                        if not todos:
                            logger.debug(f"No todos for {person.email}, no summary sent")
                            continue

                        self._count(result, self.notifier.send_daily_summary(person, todos))

                return self._finish(result)
        finally:
            self._summary_lock.release()

    def run_due_reminders(
        self,
        window_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ReminderRunResult:
        """Remind assignees of incomplete todos due within the window.

        Overdue todos are included.

        Args:
            window_seconds: Look-ahead window (defaults to reminders.due_soon_window)
            now: Reference time (defaults to current UTC time)

        Returns:
            ReminderRunResult; ``considered`` counts todos examined
        """
        started = now or utc_now()
        if window_seconds is None:
            window_seconds = self.reminder_config.due_soon_window_seconds
        if not self._due_lock.acquire(blocking=False):
            return self._skipped("due_reminders", started)

        try:
            with log_context(run_id=uuid4().hex, reminder_run="due_reminders"):
                result = ReminderRunResult(
                    kind="due_reminders", run_started_at=started, run_finished_at=started
                )
                horizon = started + timedelta(seconds=window_seconds)

                with self.session_scope() as session:
                    due = TodoRepository(session).find_by_due_date_before_and_completed(
                        horizon, False
                    )
                    for todo in due:
                        if todo.assigned_to is None:
                            continue
                        result.considered += 1
                        self._count(
                            result, self.notifier.send_due_date_reminder(todo, todo.assigned_to)
                        )

                return self._finish(result)
        finally:
            self._due_lock.release()

    @staticmethod
    def _count(result: ReminderRunResult, sent: bool) -> None:
        if sent:
            result.sent += 1
        else:
            result.failed += 1

    @staticmethod
    def _finish(result: ReminderRunResult) -> ReminderRunResult:
        result.run_finished_at = utc_now()
        logger.info(
            f"Reminder run {result.kind} complete: {result.sent} sent, "
            f"{result.failed} failed ({result.considered} considered)",
            extra={
                "event": "reminders.run.completed",
                "sent": result.sent,
                "failed": result.failed,
                "considered": result.considered,
            },
        )
        return result

    @staticmethod
    def _skipped(kind: str, started: datetime) -> ReminderRunResult:
        logger.warning(
            f"Reminder run {kind} skipped: previous run still in progress",
            extra={"event": "reminders.run.skipped", "reason": "lock_held"},
        )
        return ReminderRunResult(
            kind=kind, run_started_at=started, run_finished_at=utc_now(), skipped=True
        )
