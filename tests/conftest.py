from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from todo_app.main import create_app
from todo_app.repositories import SQLiteRepository

from .fakes import BrokenRepository, StrictTitleRepository


@pytest.fixture()
def db_path(tmp_path: Path) -> str:
    # Nested directory so the repository has to create it.
    return str(tmp_path / "App_Data" / "todo.db")


@pytest.fixture()
def repo(db_path: str) -> SQLiteRepository:
    return SQLiteRepository(db_path)


@pytest.fixture()
def client(repo: SQLiteRepository) -> TestClient:
    return TestClient(create_app(repo))


@pytest.fixture()
def broken_client() -> TestClient:
    return TestClient(create_app(BrokenRepository()))


@pytest.fixture()
def strict_client(db_path: str) -> TestClient:
    return TestClient(create_app(StrictTitleRepository(db_path)))
