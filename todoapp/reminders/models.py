"""Data models for reminder run tracking and reporting."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ReminderRunResult:
    """
    Outcome of one batch of reminder emails.

    Attributes:
        kind: "daily_summary" or "due_reminders"
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        considered: Number of people or todos examined
        sent: Notifications the transport accepted
        failed: Notifications that were not delivered
        skipped: Whether the run was skipped because another was in progress
    """

    kind: str
    run_started_at: datetime
    run_finished_at: datetime
    considered: int = 0
    sent: int = 0
    failed: int = 0
    skipped: bool = False

    @property
    def had_failures(self) -> bool:
        return self.failed > 0

    @property
    def duration_seconds(self) -> float:
        return (self.run_finished_at - self.run_started_at).total_seconds()
