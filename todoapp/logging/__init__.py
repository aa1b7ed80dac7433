"""Structured logging helpers.

Loggers are plain ``logging`` loggers; get_logger() optionally wraps one so
every record carries a ``component`` field.
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its component field with per-call extra."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally tagging all of its records with a component.

    Example:
        >>> logger = get_logger(__name__, component="notification")
        >>> logger.info("Sent", extra={"event": "notification.send.success"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger


__all__ = ["ComponentLoggerAdapter", "get_logger"]
