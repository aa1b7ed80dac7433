"""Scheduler service for recurring reminder runs."""

import threading
from datetime import datetime, time, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from todoapp.logging import get_logger

logger = get_logger(__name__, component="scheduler")

DAILY_SUMMARY_JOB_ID = "daily-summary"
DUE_REMINDERS_JOB_ID = "due-reminders"


class SchedulerService:
    """
    Wraps APScheduler to trigger daily summaries and due-date reminders.

    Uses BackgroundScheduler to run jobs in a separate thread while
    allowing the main thread to handle signals and coordinate shutdown.
    """

    def __init__(
        self,
        daily_summary_callable: Callable[[], object],
        due_reminders_callable: Callable[[], object],
        daily_summary_at: time,
        due_reminder_interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler service.

        Args:
            daily_summary_callable: Called once a day at ``daily_summary_at``
            due_reminders_callable: Called every ``due_reminder_interval_seconds``
            daily_summary_at: UTC time of day for the summary run
            due_reminder_interval_seconds: Interval between due-reminder runs
            shutdown_event: Optional event to set on shutdown for coordination
        """
        self.daily_summary_callable = daily_summary_callable
        self.due_reminders_callable = due_reminders_callable
        self.daily_summary_at = daily_summary_at
        self.due_reminder_interval_seconds = due_reminder_interval_seconds
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # Prevent overlapping runs
                "coalesce": True,  # If run is delayed, only execute once
                "misfire_grace_time": 300,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """
        Register both jobs and start the scheduler.

        Due reminders run once immediately, then at the configured interval.
        The daily summary waits for its time of day.
        """
        next_due_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self.due_reminders_callable,
            trigger=IntervalTrigger(
                seconds=self.due_reminder_interval_seconds,
                timezone=timezone.utc,
            ),
            id=DUE_REMINDERS_JOB_ID,
            name="Due-date reminders",
            replace_existing=True,
            next_run_time=next_due_run,
        )
        self.scheduler.add_job(
            func=self.daily_summary_callable,
            trigger=CronTrigger(
                hour=self.daily_summary_at.hour,
                minute=self.daily_summary_at.minute,
                timezone=timezone.utc,
            ),
            id=DAILY_SUMMARY_JOB_ID,
            name="Daily todo summary",
            replace_existing=True,
        )

        self.scheduler.start()

        logger.info(
            f"Scheduler started: due reminders every {self.due_reminder_interval_seconds} seconds, "
            f"daily summary at {self.daily_summary_at.strftime('%H:%M')} UTC",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.due_reminder_interval_seconds,
                "daily_summary_at": self.daily_summary_at.strftime("%H:%M"),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler gracefully.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self, job_id: str) -> Optional[datetime]:
        """
        Get the next scheduled run time of a job.

        Args:
            job_id: DAILY_SUMMARY_JOB_ID or DUE_REMINDERS_JOB_ID

        Returns:
            Next run time, or None if the job is not scheduled
        """
        job = self.scheduler.get_job(job_id)
        return job.next_run_time if job else None
