"""Data access layer (repositories) for people, todos and attachments.

Repositories encapsulate database operations and return domain models rather
than ORM models. They flush but never commit; the caller owns the transaction
(see get_session()).
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from todoapp.domain.models import Attachment, Person, Todo
from todoapp.utils.timestamps import ensure_utc, to_storage, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import AttachmentModel, PersonModel, TodoModel

logger = logging.getLogger(__name__)


class _Repository:
    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def _all(self, stmt, description: str) -> list:
        try:
            models = self.session.execute(stmt).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving {description}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve {description}: {e}") from e

    def _one(self, model_class, record_id: int, description: str):
        try:
            model = self.session.get(model_class, record_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving {description} {record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve {description}: {e}") from e

    def _delete(self, model_class, record_id: int, description: str) -> bool:
        try:
            model = self.session.get(model_class, record_id)
            if model is None:
                return False
            self.session.delete(model)
            self.session.flush()
            logger.debug(f"Deleted {description} {record_id}")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {description} {record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete {description}: {e}") from e


class PersonRepository(_Repository):
    """Repository for people."""

    def save(self, person: Person, now: Optional[datetime] = None) -> Person:
        """Insert a new person or update an existing one.

        The database id and creation time are written back onto ``person``.

        Args:
            person: Person to persist
            now: Creation time for new records (defaults to current UTC time)

        Returns:
            Persisted Person domain model

        Raises:
            DataIntegrityError: If another person already uses the email address
            RecordNotFoundError: If ``person.id`` is set but no such row exists
            PersistenceError: If database error occurs
        """
        try:
            owner_id = self.session.execute(
                select(PersonModel.id).where(PersonModel.email == person.email)
            ).scalar_one_or_none()
            if owner_id is not None and owner_id != person.id:
                raise DataIntegrityError(f"A person with email {person.email} already exists")

            if person.id is not None:
                model = self.session.get(PersonModel, person.id)
                if model is None:
                    raise RecordNotFoundError(f"Person with id {person.id} not found")
                model.apply(person)
            else:
                model = PersonModel(created_at=to_storage(person.created_at or now or utc_now()))
                model.apply(person)
                self.session.add(model)

            self.session.flush()

        except IntegrityError as e:
            logger.error(f"Integrity error saving person {person.email}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to save person due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving person {person.email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save person: {e}") from e

        saved = model.to_domain()
        person.id = saved.id
        person.created_at = saved.created_at
        return saved

    def get(self, person_id: int) -> Optional[Person]:
        return self._one(PersonModel, person_id, "person")

    def find_all(self) -> List[Person]:
        return self._all(select(PersonModel).order_by(PersonModel.id), "people")

    def find_by_email(self, email: str) -> Optional[Person]:
        try:
            model = self.session.execute(
                select(PersonModel).where(PersonModel.email == email.strip().lower())
            ).scalar_one_or_none()
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving person by email {email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve person: {e}") from e

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def delete(self, person_id: int) -> bool:
        """Delete a person. Their todos stay, unassigned.

        Returns:
            True if a row was deleted, False if it did not exist
        """
        try:
            self.session.execute(
                update(TodoModel)
                .where(TodoModel.assigned_to_id == person_id)
                .values(assigned_to_id=None)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error unassigning todos of person {person_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete person: {e}") from e

        deleted = self._delete(PersonModel, person_id, "person")
        # Loaded todos may still reference the deleted person
        self.session.expire_all()
        return deleted


class TodoRepository(_Repository):
    """Repository for todos and, through cascade, their attachments."""

    def save(self, todo: Todo, now: Optional[datetime] = None) -> Todo:
        """Insert a new todo or update an existing one.

        ``created_at`` is set on the first save only; ``updated_at`` is
        refreshed on every save. Attachments are synchronised with
        ``todo.attachments``: new ones are inserted and ones no longer
        listed are deleted. Ids are written back onto ``todo`` and its
        attachments.

        Args:
            todo: Todo to persist; an assignee must already be stored
            now: Timestamp for this save (defaults to current UTC time)

        Returns:
            Persisted Todo domain model

        Raises:
            RecordNotFoundError: If the todo id or the assignee is unknown
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        stamp = ensure_utc(now or utc_now())
        created_at = todo.created_at or stamp

        try:
            if todo.id is not None:
                model = self.session.get(TodoModel, todo.id)
                if model is None:
                    raise RecordNotFoundError(f"Todo with id {todo.id} not found")
            else:
                model = TodoModel()

            model.apply(todo)
            model.created_at = to_storage(created_at)
            model.updated_at = to_storage(stamp)
            model.assigned_to = self._resolve_assignee(todo.assigned_to)
            pending = self._sync_attachments(model, todo)

            self.session.add(model)
            self.session.flush()

        except IntegrityError as e:
            logger.error(f"Integrity error saving todo '{todo.title}': {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to save todo due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving todo '{todo.title}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to save todo: {e}") from e

        # The caller's todo is only stamped once the row is written
        todo.id = model.id
        if todo.created_at is None:
            todo.mark_created(stamp)
        else:
            todo.touch(stamp)
        for attachment, attachment_model in pending:
            attachment.id = attachment_model.id

        return model.to_domain()

    def _resolve_assignee(self, person: Optional[Person]) -> Optional[PersonModel]:
        if person is None:
            return None

        if person.id is not None:
            model = self.session.get(PersonModel, person.id)
        else:
            model = self.session.execute(
                select(PersonModel).where(PersonModel.email == person.email.lower())
            ).scalar_one_or_none()

        if model is None:
            raise RecordNotFoundError(f"Assignee {person.email} has not been saved")
        return model

    def _sync_attachments(self, model: TodoModel, todo: Todo) -> list:
        """Point ``model.attachments`` at the rows matching ``todo.attachments``.

        Returns:
            (domain attachment, new ORM row) pairs for attachments being inserted
        """
        existing = {attachment.id: attachment for attachment in model.attachments}
        synced = []
        pending = []

        for attachment in todo.attachments:
            attachment_model = None
            if attachment.id is not None:
                attachment_model = existing.get(attachment.id) or self.session.get(
                    AttachmentModel, attachment.id
                )

            if attachment_model is None:
                attachment_model = AttachmentModel.from_domain(attachment)
                pending.append((attachment, attachment_model))
            synced.append(attachment_model)

        model.attachments = synced
        return pending

    def get(self, todo_id: int) -> Optional[Todo]:
        return self._one(TodoModel, todo_id, "todo")

    def find_all(self) -> List[Todo]:
        return self._all(select(TodoModel).order_by(TodoModel.id), "todos")

    def delete(self, todo_id: int) -> bool:
        """Delete a todo and its attachments.

        Returns:
            True if a row was deleted, False if it did not exist
        """
        return self._delete(TodoModel, todo_id, "todo")

    def find_by_assigned_to(self, person: Person) -> List[Todo]:
        stmt = (
            select(TodoModel)
            .join(PersonModel, TodoModel.assigned_to_id == PersonModel.id)
            .where(PersonModel.email == person.email)
            .order_by(TodoModel.id)
        )
        return self._all(stmt, f"todos assigned to {person.email}")

    def count_by_assigned_to(self, person: Person) -> int:
        try:
            stmt = (
                select(func.count(TodoModel.id))
                .join(PersonModel, TodoModel.assigned_to_id == PersonModel.id)
                .where(PersonModel.email == person.email)
            )
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting todos for {person.email}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count todos: {e}") from e

    def find_by_completed_and_assigned_to(self, completed: bool, person: Person) -> List[Todo]:
        stmt = (
            select(TodoModel)
            .join(PersonModel, TodoModel.assigned_to_id == PersonModel.id)
            .where(PersonModel.email == person.email, TodoModel.completed == completed)
            .order_by(TodoModel.id)
        )
        return self._all(stmt, f"todos assigned to {person.email}")

    def find_by_title_containing(self, text: str) -> List[Todo]:
        """Case-insensitive substring search on titles."""
        stmt = (
            select(TodoModel)
            .where(TodoModel.title.icontains(text, autoescape=True))
            .order_by(TodoModel.id)
        )
        return self._all(stmt, f"todos matching '{text}'")

    def find_by_completed(self, completed: bool) -> List[Todo]:
        stmt = select(TodoModel).where(TodoModel.completed == completed).order_by(TodoModel.id)
        return self._all(stmt, "todos by completion")

    def find_by_due_date_between(self, start: datetime, end: datetime) -> List[Todo]:
        """Todos due within [start, end], ordered by due date."""
        stmt = (
            select(TodoModel)
            .where(
                TodoModel.due_date >= to_storage(start),
                TodoModel.due_date <= to_storage(end),
            )
            .order_by(TodoModel.due_date, TodoModel.id)
        )
        return self._all(stmt, "todos by due date")

    def find_by_due_date_before_and_completed(self, before: datetime, completed: bool) -> List[Todo]:
        stmt = (
            select(TodoModel)
            .where(TodoModel.due_date < to_storage(before), TodoModel.completed == completed)
            .order_by(TodoModel.due_date, TodoModel.id)
        )
        return self._all(stmt, "todos by due date")

    def find_overdue(self, now: Optional[datetime] = None) -> List[Todo]:
        """Incomplete todos whose due date has passed."""
        return self.find_by_due_date_before_and_completed(now or utc_now(), False)

    def find_unassigned(self) -> List[Todo]:
        stmt = select(TodoModel).where(TodoModel.assigned_to_id.is_(None)).order_by(TodoModel.id)
        return self._all(stmt, "unassigned todos")

    def find_without_due_date(self) -> List[Todo]:
        stmt = select(TodoModel).where(TodoModel.due_date.is_(None)).order_by(TodoModel.id)
        return self._all(stmt, "todos without due date")


class AttachmentRepository(_Repository):
    """Read access to attachments. Writes go through TodoRepository.save()."""

    def get(self, attachment_id: int) -> Optional[Attachment]:
        return self._one(AttachmentModel, attachment_id, "attachment")

    def find_by_todo(self, todo: Todo) -> List[Attachment]:
        if todo.id is None:
            return []
        stmt = (
            select(AttachmentModel)
            .where(AttachmentModel.todo_id == todo.id)
            .order_by(AttachmentModel.id)
        )
        return self._all(stmt, f"attachments of todo {todo.id}")

    def find_by_file_type(self, file_type: str) -> List[Attachment]:
        stmt = (
            select(AttachmentModel)
            .where(AttachmentModel.file_type == file_type)
            .order_by(AttachmentModel.id)
        )
        return self._all(stmt, f"attachments of type {file_type}")

    def find_by_file_name_containing(self, text: str) -> List[Attachment]:
        stmt = (
            select(AttachmentModel)
            .where(AttachmentModel.file_name.icontains(text, autoescape=True))
            .order_by(AttachmentModel.id)
        )
        return self._all(stmt, f"attachments matching '{text}'")
