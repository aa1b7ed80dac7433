"""Todo notifier: email notifications and reminders for a todo application."""

__version__ = "0.1.0"
