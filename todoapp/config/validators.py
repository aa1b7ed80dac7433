"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration

KNOWN_SECTIONS = {"email", "reminders", "logging"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Inspect a raw configuration mapping for settings that are valid but suspicious.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    messages = []

    for key in sorted(set(config_dict) - KNOWN_SECTIONS):
        messages.append(f"Unknown configuration section '{key}' will be ignored")

    email = config_dict.get("email")
    if isinstance(email, dict) and str(email.get("transport", "smtp")).lower() == "memory":
        messages.append(
            "email.transport is 'memory': notifications are rendered but never delivered"
        )

    reminders = config_dict.get("reminders")
    if isinstance(reminders, dict):
        window = reminders.get("due_soon_window")
        if isinstance(window, str):
            try:
                if parse_duration(window) < 3600:
                    messages.append(
                        f"Short due_soon_window ({window}) will send reminders very close to deadlines"
                    )
            except DurationParseError:
                # Reported as a validation error by the model
                pass

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
