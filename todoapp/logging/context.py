"""Scoped logging context.

Fields pushed here (notification event, todo id, recipient, command name)
are copied onto every log record emitted inside the scope by
ContextualFilter. Backed by contextvars, so scopes are isolated per thread
and per asyncio task.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar("todoapp_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active context fields."""
    return dict(_log_context.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the active context and return a token for pop_log_context()."""
    return _log_context.set({**_log_context.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before the matching push."""
    _log_context.reset(token)


def clear_log_context() -> None:
    """Drop all context fields. Used by tests."""
    _log_context.set({})


class log_context:
    """Context manager that scopes logging fields.

    Example:
        >>> with log_context(notification_event="assigned", todo_id=7):
        ...     logger.info("Rendering")  # record carries both fields
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
