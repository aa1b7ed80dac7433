"""Core domain models for people, todos and attachments.

This module defines the data structures used throughout the application:
- Person: a user identified uniquely by email address
- Todo: a task with optional description, due date and assignee
- Attachment: a binary file owned by exactly one Todo

The notification layer treats these models as read-only snapshots. Only the
application layer (repositories, seeding, CLI) creates or mutates them.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from todoapp.utils.timestamps import ensure_utc


class Person(BaseModel):
    """A user who can own or be assigned todos.

    Two people are equal when their email addresses are equal, regardless of
    database identity.
    """

    id: Optional[int] = Field(None, description="Database identifier, None until persisted")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique email address")
    birth_date: Optional[date] = Field(None, description="Date of birth")
    created_at: Optional[datetime] = Field(None, description="When the person was stored (UTC)")

    @field_validator("name", "email")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from required string fields."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Lowercase the address; equality and lookups are by email."""
        return v.lower()

    @field_validator("created_at")
    @classmethod
    def normalise_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Person):
            return NotImplemented
        return self.email == other.email

    def __hash__(self) -> int:
        return hash(self.email)

    model_config = {"json_schema_extra": {"example": {
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "birth_date": "1990-05-15",
    }}}


class Attachment(BaseModel):
    """A file attached to a todo.

    The ``todo`` back-reference is maintained by Todo.add_attachment() and
    Todo.remove_attachment(); do not assign it directly.
    """

    id: Optional[int] = Field(None, description="Database identifier, None until persisted")
    file_name: str = Field(..., min_length=1, max_length=255, description="Original file name")
    file_type: str = Field(..., min_length=1, max_length=100, description="MIME type")
    data: bytes = Field(..., repr=False, description="Binary payload")
    todo: Optional["Todo"] = Field(None, repr=False, exclude=True, description="Owning todo")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Attachment):
            return NotImplemented
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        # Constant per class so the hash survives being persisted
        return hash(Attachment)


class Todo(BaseModel):
    """A task record.

    Timestamps are set by the persistence layer: ``created_at`` exactly once
    via mark_created(), ``updated_at`` on every save via touch(). Equality is
    by database identity once persisted and by object identity before.
    """

    id: Optional[int] = Field(None, description="Database identifier, None until persisted")
    title: str = Field(..., max_length=100, description="Short task title")
    description: Optional[str] = Field(None, max_length=500, description="Longer task details")
    completed: bool = Field(False, description="Whether the task is done")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp (UTC)")
    updated_at: Optional[datetime] = Field(None, description="Last modification timestamp (UTC)")
    due_date: Optional[datetime] = Field(None, description="When the task is due (UTC)")
    assigned_to: Optional[Person] = Field(None, description="Person responsible for the task")
    attachments: List[Attachment] = Field(default_factory=list, repr=False)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Titles are required and stripped."""
        if not v or not v.strip():
            raise ValueError("title cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank descriptions as absent."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("created_at", "updated_at", "due_date")
    @classmethod
    def normalise_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def link_attachments(self):
        """Point every initial attachment back at this todo."""
        for attachment in self.attachments:
            attachment.todo = self
        return self

    def add_attachment(self, attachment: Attachment) -> None:
        """Attach a file to this todo, updating both sides of the relationship.

        An attachment owned by another todo is detached from it first.
        """
        owner = attachment.todo
        if owner is not None and owner is not self:
            owner.remove_attachment(attachment)

        if not any(existing is attachment for existing in self.attachments):
            self.attachments.append(attachment)
        attachment.todo = self

    def remove_attachment(self, attachment: Attachment) -> None:
        """Detach a file from this todo, clearing its back-reference."""
        remaining = [existing for existing in self.attachments if existing is not attachment]
        if len(remaining) == len(self.attachments):
            return

        self.attachments = remaining
        attachment.todo = None

    def mark_created(self, now: datetime) -> None:
        """Set creation and update timestamps. Has no effect once created."""
        if self.created_at is not None:
            return
        stamp = ensure_utc(now)
        self.created_at = stamp
        self.updated_at = stamp

    def touch(self, now: datetime) -> None:
        """Refresh the update timestamp after a mutation."""
        self.updated_at = ensure_utc(now)

    def is_overdue(self, now: datetime) -> bool:
        """Check whether the todo is incomplete and past its due date."""
        if self.completed or self.due_date is None:
            return False
        return self.due_date < ensure_utc(now)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Todo):
            return NotImplemented
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        # Constant per class so the hash survives being persisted
        return hash(Todo)

    model_config = {"json_schema_extra": {"example": {
        "title": "Buy groceries",
        "description": "Milk, eggs, bread, vegetables",
        "completed": False,
        "due_date": "2025-01-05T14:30:00Z",
    }}}


Attachment.model_rebuild()
