from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generator

from .errors import StorageUnavailable
from .models import TITLE_MAX_LENGTH, TaskEntity

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class _Cols:
    table: str = "todo_items"
    id: str = "id"
    title: str = "title"
    is_completed: str = "is_completed"
    created_at_utc: str = "created_at_utc"


COLS = _Cols()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Serialize a UTC timestamp for storage.

    Microseconds are always written so that text ordering of the column
    matches chronological ordering.
    """
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# PUBLIC_INTERFACE
@contextmanager
def connect(
    db_path: str,
    *,
    immediate: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Open a connection for the duration of one operation.

    Commits when the block exits normally, rolls back otherwise and always
    closes the connection. With ``immediate=True`` the transaction is begun
    with ``BEGIN IMMEDIATE`` so the write lock is held from the first read.

    Raises:
        StorageUnavailable: the file cannot be opened or a statement fails.
    """
    try:
        conn = sqlite3.connect(db_path, timeout=timeout)
    except sqlite3.Error as exc:
        raise StorageUnavailable(f"Cannot open database at {db_path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        with contextlib.suppress(sqlite3.Error):
            conn.rollback()
        raise StorageUnavailable(f"Database operation failed on {db_path}: {exc}") from exc
    except BaseException:
        with contextlib.suppress(sqlite3.Error):
            conn.rollback()
        raise
    finally:
        conn.close()


# PUBLIC_INTERFACE
def ensure_schema(db_path: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
    """
    Make sure the database file and the task table exist.

    Creates missing parent directories, then the table and its ordering
    index if absent. Safe to call on every start; existing rows are kept.

    Raises:
        StorageUnavailable: the directory or database file cannot be created.
    """
    directory = os.path.dirname(db_path)
    if directory:
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Cannot create directory {directory}: {exc}") from exc

    with connect(db_path, timeout=timeout) as conn:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {COLS.table} (
                {COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                {COLS.title} TEXT NOT NULL CHECK (length({COLS.title}) <= {TITLE_MAX_LENGTH}),
                {COLS.is_completed} INTEGER NOT NULL DEFAULT 0,
                {COLS.created_at_utc} TEXT NOT NULL
            )
            """
        )
        conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_{COLS.table}_order "
            f"ON {COLS.table}({COLS.is_completed}, {COLS.created_at_utc})"
        )
    logger.debug("Schema ensured at %s", db_path)


def row_to_entity(row: sqlite3.Row) -> TaskEntity:
    return {
        "id": int(row[COLS.id]),
        "title": str(row[COLS.title]),
        "is_completed": bool(row[COLS.is_completed]),
        "created_at_utc": parse_timestamp(row[COLS.created_at_utc]),
    }
