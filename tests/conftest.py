"""Shared fixtures for the todo notifier test suite."""

from datetime import date, datetime, timezone

import pytest

from todoapp.config.models import SMTPSettings
from todoapp.domain.models import Person, Todo
from todoapp.logging.context import clear_log_context
from todoapp.notifications.service import TodoNotificationService
from todoapp.notifications.transport import InMemoryTransport
from todoapp.persistence import close_database, get_session, init_database

FIXED_NOW = datetime(2025, 1, 5, 14, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def now():
    """Fixed reference time: Jan 05, 2025 at 14:30 UTC."""
    return FIXED_NOW


@pytest.fixture
def alice():
    return Person(
        name="Alice Johnson",
        email="alice@example.com",
        birth_date=date(1990, 5, 15),
    )


@pytest.fixture
def bob():
    return Person(name="Bob Smith", email="bob@example.com", birth_date=date(1985, 8, 22))


@pytest.fixture
def todo(alice):
    """A fully populated, incomplete todo assigned to Alice."""
    return Todo(
        title="Buy groceries",
        description="Milk, eggs, bread, vegetables",
        due_date=datetime(2025, 1, 7, 14, 30, tzinfo=timezone.utc),
        assigned_to=alice,
    )


@pytest.fixture
def bare_todo():
    """A todo with no description and no due date."""
    return Todo(title="Learn Spring Boot")


@pytest.fixture
def smtp_settings():
    """SMTP settings using STARTTLS on port 587 with authentication."""
    return SMTPSettings(
        host="smtp.example.com",
        port=587,
        username="user@example.com",
        password="secret123",
        from_address="noreply@example.com",
        from_name="Todo App",
    )


@pytest.fixture
def memory_transport():
    return InMemoryTransport()


@pytest.fixture
def notifier(memory_transport):
    """Notification service wired to the in-memory transport."""
    return TodoNotificationService(memory_transport)


@pytest.fixture
def database(tmp_path):
    """Initialise a throwaway SQLite database for one test."""
    db_url = f"sqlite:///{tmp_path / 'todo_test.db'}"
    init_database(db_url)
    yield db_url
    close_database()


@pytest.fixture
def session(database):
    """A session inside a transaction that commits on exit."""
    with get_session() as db_session:
        yield db_session
