import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest

from todo_app import db as db_module
from todo_app.db import connect, ensure_schema
from todo_app.errors import InvalidArgument, StorageUnavailable
from todo_app.repositories import SQLiteRepository


def titles(items):
    return [t["title"] for t in items]


def trace_statements(monkeypatch):
    """Record every SQL statement sent on connections opened from now on."""
    statements = []
    real_connect = sqlite3.connect

    def traced_connect(*args, **kwargs):
        conn = real_connect(*args, **kwargs)
        conn.set_trace_callback(statements.append)
        return conn

    monkeypatch.setattr(db_module.sqlite3, "connect", traced_connect)
    return statements


@contextmanager
def hold_write_lock(db_path):
    """Keep a RESERVED lock on the database from a second connection."""
    other = sqlite3.connect(db_path, isolation_level=None)
    try:
        other.execute("BEGIN IMMEDIATE")
        yield other
    finally:
        other.execute("ROLLBACK")
        other.close()


class TestSchema:
    def test_creates_missing_directory_and_file(self, db_path):
        assert not os.path.exists(os.path.dirname(db_path))
        ensure_schema(db_path)
        assert os.path.isfile(db_path)

    def test_ensure_schema_twice_keeps_data(self, db_path):
        repo = SQLiteRepository(db_path)
        created = repo.add("Keep me")

        ensure_schema(db_path)
        ensure_schema(db_path)

        items = SQLiteRepository(db_path).list_all()
        assert [t["id"] for t in items] == [created["id"]]
        assert items[0]["title"] == "Keep me"

    def test_unwritable_location_raises_storage_unavailable(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("plain file")
        with pytest.raises(StorageUnavailable) as excinfo:
            ensure_schema(str(blocker / "todo.db"))
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_connect_wraps_driver_errors(self, db_path):
        ensure_schema(db_path)
        with pytest.raises(StorageUnavailable) as excinfo:
            with connect(db_path) as conn:
                conn.execute("SELECT * FROM missing_table")
        assert isinstance(excinfo.value.__cause__, sqlite3.Error)

    def test_connect_rolls_back_on_error(self, db_path):
        ensure_schema(db_path)
        with pytest.raises(RuntimeError):
            with connect(db_path) as conn:
                conn.execute(
                    "INSERT INTO todo_items (title, is_completed, created_at_utc) VALUES (?, 0, ?)",
                    ("ghost", datetime.now(timezone.utc).isoformat()),
                )
                raise RuntimeError("boom")
        assert SQLiteRepository(db_path).list_all() == []


class TestAdd:
    def test_add_returns_populated_task(self, repo):
        before = datetime.now(timezone.utc)
        task = repo.add("  Buy milk  ")
        after = datetime.now(timezone.utc)

        assert task["id"] == 1
        assert task["title"] == "Buy milk"
        assert task["is_completed"] is False
        assert task["created_at_utc"].tzinfo is not None
        assert before - timedelta(seconds=1) <= task["created_at_utc"] <= after + timedelta(seconds=1)

    def test_added_task_listed_exactly_once(self, repo):
        repo.add("Other")
        task = repo.add(" Water plants ")
        matches = [t for t in repo.list_all() if t["title"] == "Water plants"]
        assert len(matches) == 1
        assert matches[0] == task

    def test_ids_are_unique(self, repo):
        ids = [repo.add(f"Task {i}")["id"] for i in range(5)]
        assert len(set(ids)) == 5
        assert ids == sorted(ids)

    @pytest.mark.parametrize("title", ["", "   ", "\t\n", None])
    def test_blank_title_rejected_without_writing(self, repo, title):
        with pytest.raises(InvalidArgument):
            repo.add(title)
        assert repo.list_all() == []

    def test_title_length_limit(self, repo):
        assert repo.add(" " + "x" * 200 + " ")["title"] == "x" * 200
        with pytest.raises(InvalidArgument):
            repo.add("x" * 201)
        assert repo.count() == 1

    def test_invalid_argument_is_value_error(self, repo):
        with pytest.raises(ValueError):
            repo.add("")

    def test_ids_not_reused_after_delete(self, repo):
        repo.add("one")
        second = repo.add("two")
        assert repo.delete(second["id"]) is True
        assert repo.add("three")["id"] == second["id"] + 1


class TestListOrdering:
    def test_empty_store(self, repo):
        assert repo.list_all() == []

    def test_incomplete_first_then_newest_first(self, repo):
        t1 = repo.add("T1")
        t2 = repo.add("T2")
        t3 = repo.add("T3")
        assert repo.mark_completed(t2["id"]) is True

        assert [t["id"] for t in repo.list_all()] == [t3["id"], t1["id"], t2["id"]]

    def test_completed_group_newest_first(self, repo):
        a = repo.add("a")
        b = repo.add("b")
        c = repo.add("c")
        repo.mark_completed(a["id"])
        repo.mark_completed(c["id"])
        assert titles(repo.list_all()) == ["b", "c", "a"]

    def test_created_timestamp_not_changed_by_completion(self, repo):
        task = repo.add("stamp")
        repo.mark_completed(task["id"])
        (stored,) = repo.list_all()
        assert stored["created_at_utc"] == task["created_at_utc"]
        assert stored["is_completed"] is True


class TestMarkCompleted:
    def test_unknown_id_returns_false_and_changes_nothing(self, repo):
        repo.add("Only")
        before = repo.list_all()
        assert repo.mark_completed(999) is False
        assert repo.list_all() == before

    def test_second_call_is_true_and_does_not_write(self, repo, monkeypatch):
        task = repo.add("Twice")
        assert repo.mark_completed(task["id"]) is True

        statements = trace_statements(monkeypatch)
        assert repo.mark_completed(task["id"]) is True
        assert statements
        assert not any(s.lstrip().upper().startswith("UPDATE") for s in statements)
        assert repo.list_all()[0]["is_completed"] is True

    def test_first_call_writes(self, repo, monkeypatch):
        task = repo.add("Once")
        statements = trace_statements(monkeypatch)
        assert repo.mark_completed(task["id"]) is True
        assert any(s.lstrip().upper().startswith("UPDATE") for s in statements)

    def test_out_of_range_id_returns_false(self, repo):
        repo.add("Only")
        assert repo.mark_completed(2**63) is False
        assert repo.mark_completed(-(2**63) - 1) is False
        assert repo.list_all()[0]["is_completed"] is False


class TestDelete:
    def test_out_of_range_id_returns_false(self, repo):
        repo.add("stay")
        assert repo.delete(2**63) is False
        assert titles(repo.list_all()) == ["stay"]

    def test_unknown_id(self, repo):
        repo.add("stay")
        assert repo.delete(42) is False
        assert titles(repo.list_all()) == ["stay"]

    def test_known_id_removed(self, repo):
        keep = repo.add("keep")
        gone = repo.add("gone")
        assert repo.delete(gone["id"]) is True
        assert [t["id"] for t in repo.list_all()] == [keep["id"]]
        assert repo.delete(gone["id"]) is False


class TestWriteLocking:
    def test_lookup_and_write_share_one_immediate_transaction(self, repo, monkeypatch):
        task = repo.add("Atomic")
        statements = trace_statements(monkeypatch)

        assert repo.mark_completed(task["id"]) is True
        assert statements[0].strip().upper() == "BEGIN IMMEDIATE"

        del statements[:]
        assert repo.delete(task["id"]) is True
        assert statements[0].strip().upper() == "BEGIN IMMEDIATE"

    def test_writers_wait_for_competing_write_lock(self, db_path):
        repo = SQLiteRepository(db_path, timeout=0.1)
        task = repo.add("Contended")

        with hold_write_lock(db_path):
            with pytest.raises(StorageUnavailable):
                repo.mark_completed(task["id"])
            with pytest.raises(StorageUnavailable):
                repo.delete(task["id"])
            # Readers are not blocked by a pending writer.
            assert repo.list_all()[0]["is_completed"] is False

        assert repo.mark_completed(task["id"]) is True
        assert repo.delete(task["id"]) is True
        assert repo.list_all() == []


class TestScenario:
    def test_end_to_end(self, repo):
        milk = repo.add("Buy milk")
        assert (milk["id"], milk["title"], milk["is_completed"]) == (1, "Buy milk", False)
        bills = repo.add("Pay bills")
        assert bills["id"] == 2

        assert [(t["id"], t["is_completed"]) for t in repo.list_all()] == [(2, False), (1, False)]

        assert repo.mark_completed(1) is True
        assert [(t["id"], t["is_completed"]) for t in repo.list_all()] == [(2, False), (1, True)]

        assert repo.delete(2) is True
        assert [(t["id"], t["title"], t["is_completed"]) for t in repo.list_all()] == [(1, "Buy milk", True)]

    def test_state_survives_new_repository_instance(self, db_path):
        SQLiteRepository(db_path).add("persisted")
        assert titles(SQLiteRepository(db_path).list_all()) == ["persisted"]
