"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can catch
every database problem with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - Database used before init_database() was called
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an operation needs a record that does not exist.

    Plain lookups return None instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated.

    Examples:
    - Two people with the same email address
    - An attachment without an owning todo
    """

    pass
