"""Persistence layer for people, todos and attachments using SQLAlchemy.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None

    # Repository classes
    - PersonRepository
    - TodoRepository
    - AttachmentRepository

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from todoapp.persistence import init_database, get_session, TodoRepository
    >>> init_database("sqlite:///./data/todo_app.db")
    >>> with get_session() as session:
    ...     overdue = TodoRepository(session).find_overdue()
"""

from .database import close_database, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import AttachmentRepository, PersonRepository, TodoRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    # Repositories
    "PersonRepository",
    "TodoRepository",
    "AttachmentRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
