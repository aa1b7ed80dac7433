"""Sample data for development and demos.

load_sample_data() stores three people and five todos covering the common
cases (near due date, completed, overdue, unassigned, no due date) and then
sends Alice a few notifications so the mail setup can be checked end to end.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from todoapp.domain.models import Person, Todo
from todoapp.logging import get_logger
from todoapp.notifications.service import TodoNotificationService
from todoapp.persistence.repositories import PersonRepository, TodoRepository
from todoapp.utils.timestamps import utc_now

logger = get_logger(__name__, component="seed")


@dataclass
class SeedResult:
    """
    Outcome of a seeding run.

    Attributes:
        skipped: True when people already existed and nothing was written
        people_created: Number of people stored
        todos_created: Number of todos stored
        notifications_sent: Notifications the transport accepted
        notifications_failed: Notifications that were not delivered
    """

    skipped: bool = False
    people_created: int = 0
    todos_created: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0


def load_sample_data(
    session: Session,
    notifier: Optional[TodoNotificationService],
    now: Optional[datetime] = None,
) -> SeedResult:
    """Store sample people and todos, then send demo notifications.

    Does nothing if any person is already stored. Notification failures are
    counted and logged, never raised; the data stays written either way.

    Args:
        session: Open session; the caller commits
        notifier: Service used for the demo emails, or None to skip them
        now: Reference time for due dates (defaults to current UTC time)

    Returns:
        SeedResult describing what was written and sent
    """
    now = now or utc_now()
    people = PersonRepository(session)
    todos = TodoRepository(session)

    if people.find_all():
        logger.info(
            "Sample data already present, skipping",
            extra={"event": "seed.skipped"},
        )
        return SeedResult(skipped=True)

    alice = Person(name="Alice Johnson", email="alice@example.com", birth_date=date(1990, 5, 15))
    bob = Person(name="Bob Smith", email="bob@example.com", birth_date=date(1985, 8, 22))
    charlie = Person(name="Charlie Brown", email="charlie@example.com", birth_date=date(1995, 3, 10))
    for person in (alice, bob, charlie):
        people.save(person, now=now)

    groceries = Todo(
        title="Buy groceries",
        description="Milk, eggs, bread, vegetables",
        due_date=now + timedelta(days=2),
        assigned_to=alice,
    )
    report = Todo(
        title="Finish project report",
        description="Complete the Q4 analysis",
        completed=True,
        due_date=now - timedelta(days=1),
        assigned_to=bob,
    )
    dentist = Todo(
        title="Call dentist",
        description="Schedule annual checkup",
        due_date=now - timedelta(days=5),
        assigned_to=alice,
    )
    garage = Todo(
        title="Clean garage",
        description="Organize tools and boxes",
        due_date=now + timedelta(days=7),
    )
    tutorial = Todo(
        title="Learn Spring Boot",
        description="Complete online tutorial",
        assigned_to=charlie,
    )
    sample_todos = [groceries, report, dentist, garage, tutorial]
    for todo in sample_todos:
        todos.save(todo, now=now)

    result = SeedResult(people_created=3, todos_created=len(sample_todos))
    logger.info(
        f"Stored {result.people_created} people and {result.todos_created} todos",
        extra={"event": "seed.data_loaded"},
    )

    if notifier is not None:
        outcomes = [
            notifier.notify_assigned(groceries, alice),
            notifier.send_due_date_reminder(dentist, alice),
            notifier.send_daily_summary(alice, todos.find_by_assigned_to(alice)),
        ]
        result.notifications_sent = sum(1 for sent in outcomes if sent)
        result.notifications_failed = len(outcomes) - result.notifications_sent

        if result.notifications_failed:
            logger.warning(
                f"{result.notifications_failed} demo notification(s) were not delivered",
                extra={"event": "seed.notifications.failed"},
            )

    logger.info(
        "Sample data loaded",
        extra={
            "event": "seed.completed",
            "notifications_sent": result.notifications_sent,
            "notifications_failed": result.notifications_failed,
        },
    )
    return result
