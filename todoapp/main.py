"""Command line entry point for the todo notifier."""

import argparse
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from todoapp.config.duration import DurationParseError, parse_duration, validate_duration_range
from todoapp.config.environment import EnvironmentConfig
from todoapp.config.exceptions import ConfigurationError
from todoapp.config.loader import load_config
from todoapp.config.models import AppConfig, TransportType
from todoapp.logging import get_logger
from todoapp.logging.config import configure_logging
from todoapp.notifications.service import TodoNotificationService
from todoapp.notifications.transport import InMemoryTransport, MailTransport, SMTPTransport
from todoapp.persistence.database import close_database, get_session, init_database
from todoapp.persistence.exceptions import RecordNotFoundError
from todoapp.reminders import ReminderRunner
from todoapp.scheduler import SchedulerService
from todoapp.seed import load_sample_data

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_NOT_DELIVERED = 2

TEST_SUBJECT = "Test Email from Todo App"
TEST_BODY = (
    "Hello! This is a test email from your Todo Application. "
    "If you receive this, your email service is working correctly!"
)
TEST_HTML_SUBJECT = "HTML Test Email"
TEST_HTML_BODY = (
    "<html><body>"
    "<h1 style='color: #4CAF50;'>Hello from Todo App!</h1>"
    "<p>This is an <strong>HTML</strong> email with <em>formatting</em>.</p>"
    "</body></html>"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo-notifier",
        description="Todo notifier - email notifications and reminders for todos",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Capture emails in memory instead of sending them",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("seed", help="Load sample people and todos, then send demo emails")

    summary = commands.add_parser("daily-summary", help="Send a todo summary to each person")
    summary.add_argument("--email", default=None, help="Only send to this person")

    due = commands.add_parser("due-reminders", help="Remind assignees of todos due soon")
    due.add_argument(
        "--window",
        default=None,
        help="Look-ahead window, e.g. 24h or P1D (default: reminders.due_soon_window)",
    )

    test_email = commands.add_parser("test-email", help="Send a test email")
    test_email.add_argument("--to", required=True, help="Recipient address")
    test_email.add_argument("--html", action="store_true", help="Send the HTML variant")

    commands.add_parser("run", help="Run the reminder scheduler until interrupted")

    return parser


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str], dry_run: bool
) -> Tuple[AppConfig, EnvironmentConfig, str]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > environment > config file.

    Returns:
        Tuple of (AppConfig, EnvironmentConfig, log level)

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(
        config_path, require_smtp=False if dry_run else None
    )
    log_level = log_level_override or env_config.log_level or app_config.logging.level
    return app_config, env_config, log_level


def build_transport(
    app_config: AppConfig, env_config: EnvironmentConfig, dry_run: bool
) -> MailTransport:
    """
    Select the mail transport.

    Raises:
        ConfigurationError: If SMTP is selected but not configured
    """
    if dry_run or app_config.email.transport == TransportType.MEMORY.value:
        logger.info(
            "Using in-memory mail transport; no email will leave this process",
            extra={"event": "transport.selected", "transport": "memory"},
        )
        return InMemoryTransport()

    if env_config.smtp is None:
        raise ConfigurationError(
            "SMTP transport selected but SMTP settings are missing",
            suggestions=["Set SMTP_HOST and MAIL_FROM_ADDRESS", "Or pass --dry-run"],
        )

    settings = env_config.smtp.model_copy(update={"timeout": app_config.email.timeout_seconds})
    logger.info(
        f"Using SMTP transport {settings.host}:{settings.port}",
        extra={"event": "transport.selected", "transport": "smtp"},
    )
    return SMTPTransport(settings)


def parse_window(value: str) -> int:
    """
    Parse a --window value into seconds.

    Raises:
        ConfigurationError: If the value is not a valid duration in range
    """
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, label="--window")
    except DurationParseError as e:
        raise ConfigurationError(
            f"Invalid --window: {e}",
            suggestions=["Use a human-readable (e.g., 24h) or ISO-8601 (e.g., P1D) duration"],
        ) from e
    return seconds


def run_seed(notifier: TodoNotificationService) -> int:
    with get_session() as session:
        result = load_sample_data(session, notifier)

    if result.skipped:
        print("Sample data already present; nothing to do")
        return EXIT_OK

    print(
        f"Created {result.people_created} people and {result.todos_created} todos; "
        f"{result.notifications_sent} notifications sent, "
        f"{result.notifications_failed} failed"
    )
    return EXIT_NOT_DELIVERED if result.notifications_failed else EXIT_OK


def run_daily_summary(runner: ReminderRunner, email: Optional[str]) -> int:
    try:
        result = runner.run_daily_summaries(email=email)
    except RecordNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NOT_DELIVERED

    print(f"Daily summaries: {result.sent} sent, {result.failed} failed")
    return EXIT_NOT_DELIVERED if result.had_failures else EXIT_OK


def run_due_reminders(runner: ReminderRunner, window: Optional[str]) -> int:
    window_seconds = parse_window(window) if window else None
    result = runner.run_due_reminders(window_seconds=window_seconds)

    print(f"Due-date reminders: {result.sent} sent, {result.failed} failed")
    return EXIT_NOT_DELIVERED if result.had_failures else EXIT_OK


def run_test_email(transport: MailTransport, to: str, html: bool) -> int:
    if html:
        sent = transport.send_html(to, TEST_HTML_SUBJECT, TEST_HTML_BODY)
    else:
        sent = transport.send_plain(to, TEST_SUBJECT, TEST_BODY)

    if sent:
        print(f"Test email sent to {to}")
        return EXIT_OK

    print(f"Failed to send test email to {to}", file=sys.stderr)
    return EXIT_NOT_DELIVERED


def run_scheduler(app_config: AppConfig, runner: ReminderRunner) -> int:
    shutdown_event = threading.Event()
    reminders = app_config.reminders

    scheduler_service = SchedulerService(
        daily_summary_callable=runner.run_daily_summaries,
        due_reminders_callable=runner.run_due_reminders,
        daily_summary_at=reminders.daily_summary_at,
        due_reminder_interval_seconds=reminders.due_soon_window_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        "Scheduler started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler_service.shutdown(wait=False)

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the todo notifier.

    Returns:
        0 on success, 1 on configuration error, 2 if any email was not delivered
    """
    load_dotenv()
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config, log_level = load_runtime_config(
            args.config, args.log_level, args.dry_run
        )
        configure_logging(
            level=log_level,
            format_type=app_config.logging.format,
            environment=os.environ.get("ENVIRONMENT", "local"),
        )

        logger.info(
            "Todo notifier starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "dry_run": args.dry_run,
                "log_level": log_level,
            },
        )

        transport = build_transport(app_config, env_config, args.dry_run)

        if args.command == "test-email":
            try:
                return run_test_email(transport, args.to, args.html)
            except ValueError as e:
                print(f"Error: {e}", file=sys.stderr)
                return EXIT_CONFIG_ERROR

        notifier = TodoNotificationService(transport)
        runner = ReminderRunner(notifier, app_config.reminders)
        init_database(env_config.database_url)

        try:
            if args.command == "seed":
                return run_seed(notifier)
            if args.command == "daily-summary":
                return run_daily_summary(runner, args.email)
            if args.command == "due-reminders":
                return run_due_reminders(runner, args.window)
            return run_scheduler(app_config, runner)
        finally:
            close_database()
            logger.info(
                "Todo notifier stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return EXIT_OK
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
