"""Scheduling of recurring reminder runs."""

from .service import DAILY_SUMMARY_JOB_ID, DUE_REMINDERS_JOB_ID, SchedulerService

__all__ = [
    "SchedulerService",
    "DAILY_SUMMARY_JOB_ID",
    "DUE_REMINDERS_JOB_ID",
]
