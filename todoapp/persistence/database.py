"""Engine and session lifecycle for the todo store.

Deleting a todo removes its attachment rows through ON DELETE CASCADE, and
deleting a person clears ``todos.assigned_to_id`` through ON DELETE SET NULL.
SQLite only honours those clauses when foreign key enforcement is switched on
for the connection, so every SQLite connection enables it and
init_database() refuses a database where it stays off.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from todoapp.logging import get_logger

from .exceptions import DatabaseConnectionError

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None

logger = get_logger(__name__, component="database")

# timeout: seconds to wait while another connection holds the SQLite write lock
SQLITE_CONNECT_ARGS = {"check_same_thread": False, "timeout": 30}


def init_database(database_url: str) -> None:
    """Connect to the todo store and create any missing tables.

    Call once at startup; calling again replaces the previous engine. For a
    SQLite file the parent directory is created, and ``sqlite:///:memory:``
    shares a single connection so every session sees the same tables.

    Args:
        database_url: SQLAlchemy URL, e.g. "sqlite:///./data/todo_app.db"

    Raises:
        DatabaseConnectionError: If the URL is invalid, the database cannot be
            reached, or SQLite foreign key enforcement cannot be enabled
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL '{database_url}': {e}") from e

    safe_url = url.render_as_string(hide_password=True)
    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": safe_url},
    )

    if _engine is not None:
        close_database()

    engine = None
    try:
        engine = _create_engine(url)
        _check_connection(engine)

        from .schema import create_schema

        create_schema(engine)
    except (DatabaseConnectionError, SQLAlchemyError, OSError) as e:
        if engine is not None:
            engine.dispose()
        if isinstance(e, DatabaseConnectionError):
            raise
        logger.error(f"Failed to initialize database {safe_url}: {e}", exc_info=True)
        raise DatabaseConnectionError(f"Failed to initialize database: {e}") from e

    _engine = engine
    _session_factory = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)

    logger.info(
        "Database initialized successfully",
        extra={"event": "database.initialised", "database_url": safe_url},
    )


def _is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def _is_sqlite_memory(url: URL) -> bool:
    return _is_sqlite(url) and url.database in (None, "", ":memory:")


def _create_engine(url: URL) -> Engine:
    if not _is_sqlite(url):
        return create_engine(url, pool_pre_ping=True)

    if _is_sqlite_memory(url):
        engine = create_engine(url, connect_args=SQLITE_CONNECT_ARGS, poolclass=StaticPool)
    else:
        db_file = Path(url.database)
        if not db_file.parent.exists():
            logger.info(f"Creating database directory: {db_file.parent}")
            db_file.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url, connect_args=SQLITE_CONNECT_ARGS, pool_pre_ping=True)

    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def _enable_foreign_keys(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _check_connection(engine: Engine) -> None:
    """Run a trivial query and, on SQLite, confirm foreign keys are enforced.

    Raises:
        DatabaseConnectionError: If the query fails or enforcement is off
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).scalar()
            if engine.dialect.name == "sqlite":
                enforced = conn.execute(text("PRAGMA foreign_keys")).scalar()
            else:
                enforced = 1
    except SQLAlchemyError as e:
        raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

    if enforced != 1:
        raise DatabaseConnectionError(
            "SQLite foreign key enforcement is off; attachments and assignees "
            "would not be cleaned up on delete"
        )
    logger.debug("Database connection validated")


@contextmanager
def get_session() -> Iterator[Session]:
    """Open a session that commits on success and rolls back on error.

    Repositories only flush; this is where their work is committed.

    Raises:
        DatabaseConnectionError: If init_database() has not been called

    Example:
        >>> with get_session() as session:
        ...     overdue = TodoRepository(session).find_overdue()
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
        logger.debug("Database session committed", extra={"event": "database.session.committed"})
    except Exception as e:
        session.rollback()
        logger.warning(
            f"Database session rolled back: {e}",
            extra={"event": "database.session.rolled_back", "error_type": type(e).__name__},
        )
        raise
    finally:
        session.close()


def close_database() -> None:
    """Dispose of the engine. Safe to call when not initialized."""
    global _engine, _session_factory

    if _engine is None:
        return

    _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database connections closed", extra={"event": "database.closed"})
