"""Template context builders.

Turns domain objects into the plain dictionaries the email templates render.
Missing-field placeholders are applied here so every template shows the same
wording for the same situation.
"""

from typing import Dict, List, Sequence

from todoapp.domain.models import Person, Todo
from todoapp.utils.timestamps import format_due_date

NO_DESCRIPTION = "No description"
NO_DESCRIPTION_PROVIDED = "No description provided"
NO_DUE_DATE = "No due date"
NO_DUE_DATE_SET = "No due date set"

STATUS_DONE = "✅ Done"
STATUS_PENDING = "⏳ Pending"

_ROW_COLOR_DONE = "#f1f8e9"
_ROW_COLOR_PENDING = "#fff3e0"


def build_todo_context(
    todo: Todo,
    recipient: Person,
    description_placeholder: str = NO_DESCRIPTION,
    due_date_placeholder: str = NO_DUE_DATE,
) -> Dict:
    """Build the context for single-todo templates.

    Args:
        todo: Todo the notification is about
        recipient: Person the notification is addressed to
        description_placeholder: Text shown when the todo has no description
        due_date_placeholder: Text shown when the todo has no due date

    Returns:
        Dictionary with keys:
        - recipient_name: Display name of the recipient
        - title: Todo title
        - description: Description or placeholder
        - due_date: Formatted due date or placeholder
        - completed: Completion flag
        - status: "Completed ✅" or "Pending ⏳"
    """
    if todo is None:
        raise ValueError("A todo is required to build a notification context")
    if recipient is None:
        raise ValueError("A recipient is required to build a notification context")

    return {
        "recipient_name": recipient.name,
        "title": todo.title,
        "description": todo.description or description_placeholder,
        "due_date": format_due_date(todo.due_date, due_date_placeholder),
        "completed": todo.completed,
        "status": "Completed ✅" if todo.completed else "Pending ⏳",
    }


def build_summary_context(person: Person, todos: Sequence[Todo]) -> Dict:
    """Build the context for the daily summary.

    Rows keep the order of ``todos``.

    Returns:
        Dictionary with keys:
        - recipient_name: Display name of the person
        - total_count, completed_count, pending_count: Aggregate counts
        - rows: One dict per todo with title, description, due_date, status, row_color
    """
    if person is None:
        raise ValueError("A person is required to build a daily summary")
    if todos is None:
        raise ValueError("A todo sequence is required to build a daily summary")

    rows: List[Dict] = []
    completed_count = 0
    for todo in todos:
        if todo is None:
            raise ValueError("Daily summary todos cannot contain None")
        if todo.completed:
            completed_count += 1
        rows.append({
            "title": todo.title,
            "description": todo.description or NO_DESCRIPTION,
            "due_date": format_due_date(todo.due_date, NO_DUE_DATE),
            "status": STATUS_DONE if todo.completed else STATUS_PENDING,
            "row_color": _ROW_COLOR_DONE if todo.completed else _ROW_COLOR_PENDING,
        })

    return {
        "recipient_name": person.name,
        "total_count": len(rows),
        "completed_count": completed_count,
        "pending_count": len(rows) - completed_count,
        "rows": rows,
    }
