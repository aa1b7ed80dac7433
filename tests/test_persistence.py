"""Unit tests for persistence layer."""

from datetime import date, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from todoapp.domain.models import Attachment, Person, Todo
from todoapp.persistence import (
    AttachmentRepository,
    DatabaseConnectionError,
    DataIntegrityError,
    PersonRepository,
    RecordNotFoundError,
    TodoRepository,
    close_database,
    get_session,
    init_database,
)


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_creates_file(self, tmp_path):
        db_file = tmp_path / "nested" / "todo.db"

        init_database(f"sqlite:///{db_file}")
        try:
            assert db_file.exists()
            with get_session() as session:
                assert session.execute(text("SELECT 1")).scalar() == 1
        finally:
            close_database()

    def test_init_database_creates_tables(self, database):
        with get_session() as session:
            rows = session.execute(
                text("SELECT name FROM sqlite_master WHERE type='table'")
            ).scalars().all()

        assert {"people", "todos", "attachments"} <= set(rows)

    def test_foreign_keys_enabled(self, database):
        with get_session() as session:
            assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_init_database_rejects_empty_url(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

    def test_session_before_init_raises(self):
        close_database()
        with pytest.raises(DatabaseConnectionError):
            with get_session():
                pass

    def test_session_after_close_raises(self, tmp_path):
        init_database(f"sqlite:///{tmp_path / 'todo.db'}")
        close_database()

        with pytest.raises(DatabaseConnectionError):
            with get_session():
                pass

    def test_invalid_url_raises(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("not a database url")

    def test_in_memory_database_shared_across_sessions(self, alice):
        init_database("sqlite:///:memory:")
        try:
            with get_session() as session:
                PersonRepository(session).save(alice)
            with get_session() as session:
                assert PersonRepository(session).exists_by_email("alice@example.com")
        finally:
            close_database()

    def test_reinit_switches_database(self, tmp_path, alice):
        init_database(f"sqlite:///{tmp_path / 'first.db'}")
        with get_session() as session:
            PersonRepository(session).save(alice)

        init_database(f"sqlite:///{tmp_path / 'second.db'}")
        try:
            with get_session() as session:
                assert PersonRepository(session).find_all() == []
        finally:
            close_database()

    def test_close_database_is_idempotent(self):
        close_database()
        close_database()

    def test_session_rolls_back_on_error(self, database, alice):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                PersonRepository(session).save(alice)
                raise RuntimeError("boom")

        with get_session() as session:
            assert PersonRepository(session).find_all() == []


class TestPersonRepository:
    def test_save_assigns_id_and_created_at(self, session, alice, now):
        saved = PersonRepository(session).save(alice, now=now)

        assert saved.id is not None
        assert alice.id == saved.id
        assert saved.created_at == now
        assert saved.birth_date == date(1990, 5, 15)

    def test_duplicate_email_rejected(self, session, alice):
        repo = PersonRepository(session)
        repo.save(alice)

        with pytest.raises(DataIntegrityError):
            repo.save(Person(name="Other Alice", email="alice@example.com"))

    def test_duplicate_email_rejected_regardless_of_case(self, session, alice):
        repo = PersonRepository(session)
        repo.save(alice)

        with pytest.raises(DataIntegrityError):
            repo.save(Person(name="Shouting Alice", email="ALICE@example.com"))
        assert len(repo.find_all()) == 1

    def test_find_by_email_ignores_case(self, session, alice):
        repo = PersonRepository(session)
        repo.save(alice)

        assert repo.find_by_email(" Alice@Example.COM ").id == alice.id

    def test_update_existing(self, session, alice):
        repo = PersonRepository(session)
        repo.save(alice)
        alice.name = "Alice Cooper"

        repo.save(alice)

        assert repo.get(alice.id).name == "Alice Cooper"
        assert len(repo.find_all()) == 1

    def test_update_unknown_id_raises(self, session):
        with pytest.raises(RecordNotFoundError):
            PersonRepository(session).save(Person(id=999, name="Nobody", email="nobody@example.com"))

    def test_find_by_email(self, session, alice, bob):
        repo = PersonRepository(session)
        repo.save(alice)
        repo.save(bob)

        assert repo.find_by_email("bob@example.com").name == "Bob Smith"
        assert repo.find_by_email("carol@example.com") is None
        assert repo.exists_by_email("alice@example.com") is True
        assert repo.exists_by_email("carol@example.com") is False

    def test_find_all_in_insertion_order(self, session, alice, bob):
        repo = PersonRepository(session)
        repo.save(alice)
        repo.save(bob)

        assert [p.email for p in repo.find_all()] == ["alice@example.com", "bob@example.com"]

    def test_delete_unassigns_todos(self, session, alice, todo):
        people = PersonRepository(session)
        todos = TodoRepository(session)
        people.save(alice)
        todos.save(todo)

        assert people.delete(alice.id) is True

        assert people.get(alice.id) is None
        remaining = todos.get(todo.id)
        assert remaining is not None
        assert remaining.assigned_to is None

    def test_delete_missing_returns_false(self, session):
        assert PersonRepository(session).delete(12345) is False


class TestTodoRepository:
    def test_save_sets_timestamps(self, session, alice, todo, now):
        PersonRepository(session).save(alice)

        saved = TodoRepository(session).save(todo, now=now)

        assert saved.id is not None
        assert saved.created_at == now
        assert saved.updated_at == now
        assert saved.assigned_to == alice

    def test_resave_keeps_created_at(self, session, alice, todo, now):
        PersonRepository(session).save(alice)
        repo = TodoRepository(session)
        repo.save(todo, now=now)

        todo.completed = True
        later = now + timedelta(hours=1)
        saved = repo.save(todo, now=later)

        assert saved.created_at == now
        assert saved.updated_at == later
        assert saved.completed is True
        assert len(repo.find_all()) == 1

    def test_round_trip_preserves_fields(self, session, alice, todo):
        PersonRepository(session).save(alice)
        repo = TodoRepository(session)
        repo.save(todo)

        loaded = repo.get(todo.id)

        assert loaded.title == "Buy groceries"
        assert loaded.description == "Milk, eggs, bread, vegetables"
        assert loaded.due_date == todo.due_date
        assert loaded.assigned_to.email == "alice@example.com"

    def test_unsaved_assignee_rejected(self, session, todo):
        with pytest.raises(RecordNotFoundError):
            TodoRepository(session).save(todo)

        assert todo.id is None
        assert todo.created_at is None
        assert todo.updated_at is None

    def test_failed_update_keeps_timestamps(self, session, alice, todo, now):
        PersonRepository(session).save(alice)
        repo = TodoRepository(session)
        repo.save(todo, now=now)

        todo.assigned_to = Person(name="Stranger", email="stranger@example.com")
        with pytest.raises(RecordNotFoundError):
            repo.save(todo, now=now + timedelta(hours=1))

        assert todo.created_at == now
        assert todo.updated_at == now

    def test_failed_insert_leaves_todo_unstamped(self, session, alice, todo, now):
        with pytest.raises(RecordNotFoundError):
            TodoRepository(session).save(todo, now=now)

        PersonRepository(session).save(alice)
        later = now + timedelta(minutes=5)
        saved = TodoRepository(session).save(todo, now=later)

        assert saved.created_at == later
        assert todo.created_at == later

    def test_update_unknown_id_raises(self, session):
        with pytest.raises(RecordNotFoundError):
            TodoRepository(session).save(Todo(id=999, title="Ghost"))

    def test_delete(self, session, bare_todo):
        repo = TodoRepository(session)
        repo.save(bare_todo)

        assert repo.delete(bare_todo.id) is True
        assert repo.get(bare_todo.id) is None
        assert repo.delete(bare_todo.id) is False


class TestTodoQueries:
    @pytest.fixture
    def stored(self, session, alice, bob, now):
        """Alice, Bob and four todos with a mix of states."""
        people = PersonRepository(session)
        people.save(alice)
        people.save(bob)

        todos = {
            "groceries": Todo(title="Buy groceries", due_date=now + timedelta(days=2), assigned_to=alice),
            "dentist": Todo(title="Call dentist", due_date=now - timedelta(days=5), assigned_to=alice),
            "report": Todo(
                title="Finish report", completed=True, due_date=now - timedelta(days=1), assigned_to=bob
            ),
            "garage": Todo(title="Clean garage"),
        }
        repo = TodoRepository(session)
        for item in todos.values():
            repo.save(item, now=now)
        return repo, todos

    def test_find_by_assigned_to(self, stored, alice, bob):
        repo, _ = stored

        assert [t.title for t in repo.find_by_assigned_to(alice)] == ["Buy groceries", "Call dentist"]
        assert repo.count_by_assigned_to(alice) == 2
        assert repo.count_by_assigned_to(bob) == 1

    def test_find_by_assigned_to_unknown_person(self, stored):
        repo, _ = stored
        stranger = Person(name="Stranger", email="stranger@example.com")

        assert repo.find_by_assigned_to(stranger) == []
        assert repo.count_by_assigned_to(stranger) == 0

    def test_find_by_completed_and_assigned_to(self, stored, alice, bob):
        repo, _ = stored

        assert len(repo.find_by_completed_and_assigned_to(False, alice)) == 2
        assert repo.find_by_completed_and_assigned_to(True, alice) == []
        assert [t.title for t in repo.find_by_completed_and_assigned_to(True, bob)] == ["Finish report"]

    def test_find_by_title_containing_is_case_insensitive(self, stored):
        repo, _ = stored

        assert [t.title for t in repo.find_by_title_containing("GROC")] == ["Buy groceries"]
        assert repo.find_by_title_containing("%") == []

    def test_find_by_completed(self, stored):
        repo, _ = stored

        assert [t.title for t in repo.find_by_completed(True)] == ["Finish report"]
        assert len(repo.find_by_completed(False)) == 3

    def test_find_by_due_date_between_is_inclusive(self, stored, now):
        repo, todos = stored

        found = repo.find_by_due_date_between(todos["dentist"].due_date, todos["groceries"].due_date)

        assert [t.title for t in found] == ["Call dentist", "Finish report", "Buy groceries"]

    def test_find_by_due_date_before_and_completed(self, stored, now):
        repo, _ = stored

        assert [t.title for t in repo.find_by_due_date_before_and_completed(now, False)] == ["Call dentist"]
        assert [t.title for t in repo.find_by_due_date_before_and_completed(now, True)] == ["Finish report"]

    def test_find_overdue(self, stored, now):
        repo, _ = stored

        assert [t.title for t in repo.find_overdue(now)] == ["Call dentist"]

    def test_find_unassigned_and_without_due_date(self, stored):
        repo, _ = stored

        assert [t.title for t in repo.find_unassigned()] == ["Clean garage"]
        assert [t.title for t in repo.find_without_due_date()] == ["Clean garage"]


class TestAttachments:
    @staticmethod
    def _pdf(name="report.pdf"):
        return Attachment(file_name=name, file_type="application/pdf", data=b"%PDF-1.4")

    def test_attachments_saved_with_todo(self, session, bare_todo):
        pdf = self._pdf()
        bare_todo.add_attachment(pdf)

        saved = TodoRepository(session).save(bare_todo)

        assert pdf.id is not None
        assert [a.file_name for a in saved.attachments] == ["report.pdf"]
        stored = AttachmentRepository(session).get(pdf.id)
        assert stored.data == b"%PDF-1.4"

    def test_removed_attachment_is_deleted(self, database, bare_todo):
        pdf = self._pdf()
        bare_todo.add_attachment(pdf)
        with get_session() as session:
            TodoRepository(session).save(bare_todo)

        bare_todo.remove_attachment(pdf)
        with get_session() as session:
            TodoRepository(session).save(bare_todo)

        with get_session() as session:
            assert AttachmentRepository(session).get(pdf.id) is None
            assert TodoRepository(session).get(bare_todo.id).attachments == []

    def test_deleting_todo_deletes_attachments(self, database, bare_todo):
        pdf = self._pdf()
        bare_todo.add_attachment(pdf)
        with get_session() as session:
            TodoRepository(session).save(bare_todo)

        with get_session() as session:
            TodoRepository(session).delete(bare_todo.id)

        with get_session() as session:
            assert AttachmentRepository(session).get(pdf.id) is None

    def test_find_by_todo(self, session, bare_todo):
        bare_todo.add_attachment(self._pdf("a.pdf"))
        bare_todo.add_attachment(self._pdf("b.pdf"))
        TodoRepository(session).save(bare_todo)

        found = AttachmentRepository(session).find_by_todo(bare_todo)

        assert [a.file_name for a in found] == ["a.pdf", "b.pdf"]

    def test_find_by_todo_unsaved(self, session):
        assert AttachmentRepository(session).find_by_todo(Todo(title="Unsaved")) == []

    def test_find_by_file_type_and_name(self, session, bare_todo):
        bare_todo.add_attachment(self._pdf("Quarterly.pdf"))
        bare_todo.add_attachment(Attachment(file_name="notes.txt", file_type="text/plain", data=b"hi"))
        TodoRepository(session).save(bare_todo)
        repo = AttachmentRepository(session)

        assert [a.file_name for a in repo.find_by_file_type("text/plain")] == ["notes.txt"]
        assert [a.file_name for a in repo.find_by_file_name_containing("quarter")] == ["Quarterly.pdf"]


class TestForeignKeyEnforcement:
    """Row deletes outside the ORM still clean up through the database."""

    def test_deleting_todo_row_removes_attachment_rows(self, database, bare_todo):
        bare_todo.add_attachment(Attachment(file_name="a.pdf", file_type="application/pdf", data=b"x"))
        with get_session() as session:
            TodoRepository(session).save(bare_todo)

        with get_session() as session:
            session.execute(text("DELETE FROM todos WHERE id = :id"), {"id": bare_todo.id})

        with get_session() as session:
            assert session.execute(text("SELECT COUNT(*) FROM attachments")).scalar() == 0

    def test_deleting_person_row_unassigns_todo_rows(self, database, alice, todo):
        with get_session() as session:
            PersonRepository(session).save(alice)
            TodoRepository(session).save(todo)

        with get_session() as session:
            session.execute(text("DELETE FROM people WHERE id = :id"), {"id": alice.id})

        with get_session() as session:
            assigned = session.execute(
                text("SELECT assigned_to_id FROM todos WHERE id = :id"), {"id": todo.id}
            ).scalar()
            assert assigned is None

    def test_attachment_for_missing_todo_rejected(self, database):
        with pytest.raises(IntegrityError):
            with get_session() as session:
                session.execute(
                    text(
                        "INSERT INTO attachments (file_name, file_type, data, todo_id) "
                        "VALUES ('a.txt', 'text/plain', x'00', 999)"
                    )
                )
