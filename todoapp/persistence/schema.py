"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for people, todos and attachments
and converts between them and the pydantic domain models. Timestamps are
stored as ISO 8601 UTC strings.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship

from todoapp.domain.models import Attachment, Person, Todo
from todoapp.utils.timestamps import from_storage, to_storage

logger = logging.getLogger(__name__)

Base = declarative_base()


class PersonModel(Base):
    """ORM model for the people table."""

    __tablename__ = "people"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    birth_date = Column(String(10), nullable=True)
    created_at = Column(String(50), nullable=False)

    def to_domain(self) -> Person:
        return Person(
            id=self.id,
            name=self.name,
            email=self.email,
            birth_date=_parse_date(self.birth_date),
            created_at=from_storage(self.created_at),
        )

    def apply(self, person: Person) -> None:
        """Copy mutable fields from a domain model."""
        self.name = person.name
        self.email = person.email
        self.birth_date = person.birth_date.isoformat() if person.birth_date else None


class TodoModel(Base):
    """ORM model for the todos table.

    Deleting a todo deletes its attachments. Deleting a person leaves their
    todos in place, unassigned.
    """

    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    # Timestamps (stored as ISO 8601 strings)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)
    due_date = Column(String(50), nullable=True)

    assigned_to_id = Column(
        Integer, ForeignKey("people.id", ondelete="SET NULL"), nullable=True
    )
    assigned_to = relationship("PersonModel", lazy="joined")
    attachments = relationship(
        "AttachmentModel",
        back_populates="todo",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AttachmentModel.id",
    )

    __table_args__ = (
        Index("idx_todos_assigned_to", "assigned_to_id"),
        Index("idx_todos_due_date", "due_date"),
    )

    def to_domain(self) -> Todo:
        return Todo(
            id=self.id,
            title=self.title,
            description=self.description,
            completed=self.completed,
            created_at=from_storage(self.created_at),
            updated_at=from_storage(self.updated_at),
            due_date=from_storage(self.due_date),
            assigned_to=self.assigned_to.to_domain() if self.assigned_to else None,
            attachments=[attachment.to_domain() for attachment in self.attachments],
        )

    def apply(self, todo: Todo) -> None:
        """Copy scalar fields from a domain model. Relationships are left alone."""
        self.title = todo.title
        self.description = todo.description
        self.completed = todo.completed
        self.created_at = to_storage(todo.created_at)
        self.updated_at = to_storage(todo.updated_at)
        self.due_date = to_storage(todo.due_date)


class AttachmentModel(Base):
    """ORM model for the attachments table."""

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100), nullable=False)
    data = Column(LargeBinary, nullable=False)
    todo_id = Column(
        Integer, ForeignKey("todos.id", ondelete="CASCADE"), nullable=False
    )
    todo = relationship("TodoModel", back_populates="attachments")

    __table_args__ = (Index("idx_attachments_todo", "todo_id"),)

    def to_domain(self) -> Attachment:
        return Attachment(
            id=self.id,
            file_name=self.file_name,
            file_type=self.file_type,
            data=self.data,
        )

    @classmethod
    def from_domain(cls, attachment: Attachment) -> "AttachmentModel":
        return cls(
            file_name=attachment.file_name,
            file_type=attachment.file_type,
            data=attachment.data,
        )


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
