from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .db import COLS, DEFAULT_TIMEOUT, connect, ensure_schema, format_timestamp, row_to_entity, utc_now
from .errors import InvalidArgument
from .models import TITLE_MAX_LENGTH, TaskEntity, id_in_range

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """Contract shared by both front ends for reading and writing tasks."""

    @abstractmethod
    def list_all(self) -> List[TaskEntity]:
        """
        Return every task: incomplete before completed, newest first within
        each group.
        """

    @abstractmethod
    def add(self, title: Optional[str]) -> TaskEntity:
        """Store a new task with a trimmed title and return it with its id."""

    @abstractmethod
    def mark_completed(self, todo_id: int) -> bool:
        """Mark a task completed. Return False if no such task exists."""

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a task by id. Return True if deleted, False if not found."""


def normalize_title(title: Optional[str]) -> str:
    """
    Trim a title and check it can be stored.

    Raises:
        InvalidArgument: title is missing, blank or longer than 200 characters.
    """
    if title is None or not title.strip():
        raise InvalidArgument("A todo item requires a non-empty title.")
    s = title.strip()
    if len(s) > TITLE_MAX_LENGTH:
        raise InvalidArgument(f"The todo title must be at most {TITLE_MAX_LENGTH} characters.")
    return s


class SQLiteRepository(Repository):
    """
    SQLite-backed repository.

    Holds only the database path; every call opens and closes its own
    connection, so one instance can be shared across worker threads.
    """

    def __init__(self, db_path: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._db_path = db_path
        self._timeout = timeout
        ensure_schema(db_path, timeout=timeout)
        logger.info("Task store ready db=%s total=%s", db_path, self.count())

    @property
    def db_path(self) -> str:
        return self._db_path

    def _conn(self, immediate: bool = False):
        return connect(self._db_path, immediate=immediate, timeout=self._timeout)

    def count(self) -> int:
        with self._conn() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {COLS.table}").fetchone()
            return int(row["cnt"]) if row else 0

    def list_all(self) -> List[TaskEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {COLS.table}
                ORDER BY {COLS.is_completed} ASC, {COLS.created_at_utc} DESC, {COLS.id} DESC
                """
            ).fetchall()
            return [row_to_entity(r) for r in rows]

    def add(self, title: Optional[str]) -> TaskEntity:
        clean = normalize_title(title)
        created = utc_now()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {COLS.table} ({COLS.title}, {COLS.is_completed}, {COLS.created_at_utc})
                VALUES (?, 0, ?)
                """,
                (clean, format_timestamp(created)),
            )
            new_id = cur.lastrowid
            row = conn.execute(f"SELECT * FROM {COLS.table} WHERE {COLS.id} = ?", (new_id,)).fetchone()
            assert row is not None
            entity = row_to_entity(row)
        logger.debug("Created todo id=%s", entity["id"])
        return entity

    def mark_completed(self, todo_id: int) -> bool:
        if not id_in_range(todo_id):
            return False
        with self._conn(immediate=True) as conn:
            row = conn.execute(
                f"SELECT {COLS.is_completed} FROM {COLS.table} WHERE {COLS.id} = ?", (todo_id,)
            ).fetchone()
            if row is None:
                return False
            if row[COLS.is_completed]:
                return True
            conn.execute(
                f"UPDATE {COLS.table} SET {COLS.is_completed} = 1 WHERE {COLS.id} = ?", (todo_id,)
            )
        logger.debug("Completed todo id=%s", todo_id)
        return True

    def delete(self, todo_id: int) -> bool:
        if not id_in_range(todo_id):
            return False
        with self._conn(immediate=True) as conn:
            row = conn.execute(f"SELECT {COLS.id} FROM {COLS.table} WHERE {COLS.id} = ?", (todo_id,)).fetchone()
            if row is None:
                return False
            conn.execute(f"DELETE FROM {COLS.table} WHERE {COLS.id} = ?", (todo_id,))
        logger.debug("Deleted todo id=%s", todo_id)
        return True
