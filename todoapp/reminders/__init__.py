"""Batch reminder runs: daily summaries and due-date reminders."""

from .models import ReminderRunResult
from .runner import ReminderRunner

__all__ = [
    "ReminderRunner",
    "ReminderRunResult",
]
