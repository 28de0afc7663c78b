"""
Interactive console front end.

Shows a numbered menu and reads one line per prompt:
1) list, 2) add, 3) complete, 4) delete, 0) exit.
The repository is passed in by the caller; ``main`` builds it from settings.
"""

from __future__ import annotations

import argparse
import logging
from typing import Callable, List, Optional

from .errors import StorageUnavailable, TodoAppError
from .logging_setup import setup_logging
from .models import TaskEntity, parse_id
from .repositories import Repository, SQLiteRepository
from .settings import get_settings

logger = logging.getLogger(__name__)

ReadLine = Callable[[str], str]
Write = Callable[[str], None]

MENU_LINES = (
    "1) List todo items",
    "2) Add a new todo item",
    "3) Complete a todo item",
    "4) Delete a todo item",
    "0) Exit",
)
INVALID_ID_MESSAGE = "The id must be a valid integer value."
NOT_FOUND_MESSAGE = "Todo item not found."


def format_task(item: TaskEntity) -> str:
    status = "[x]" if item["is_completed"] else "[ ]"
    created = item["created_at_utc"].astimezone().strftime("%Y-%m-%d %H:%M")
    return f"{status} {item['id']}: {item['title']} (Created {created})"


class TodoMenu:
    """Numbered console menu bound to one repository."""

    def __init__(
        self,
        repository: Repository,
        read_line: Optional[ReadLine] = None,
        write: Optional[Write] = None,
    ) -> None:
        self._repo = repository
        self._read = read_line or input
        self._write = write or print

    def _failed(self, action: str, exc: Exception) -> None:
        if isinstance(exc, StorageUnavailable):
            logger.error("Storage failure while trying to %s", action, exc_info=exc)
        self._write(f"Failed to {action}: {exc}")

    def list_todos(self) -> None:
        try:
            items = self._repo.list_all()
        except TodoAppError as exc:
            self._failed("read todo items", exc)
            return

        if not items:
            self._write("No todo items found. Add your first task!")
            return

        self._write("Current todo items:")
        for item in items:
            self._write(format_task(item))

    def create_todo(self) -> None:
        title = self._read("Enter a title for the todo item: ")
        try:
            entity = self._repo.add(title)
        except TodoAppError as exc:
            self._failed("create todo item", exc)
            return
        self._write(f"Created todo item #{entity['id']}: {entity['title']}")

    def complete_todo(self) -> None:
        todo_id = parse_id(self._read("Enter the id of the todo item to complete: "))
        if todo_id is None:
            self._write(INVALID_ID_MESSAGE)
            return
        try:
            updated = self._repo.mark_completed(todo_id)
        except TodoAppError as exc:
            self._failed("update todo item", exc)
            return
        self._write("Todo item marked as completed." if updated else NOT_FOUND_MESSAGE)

    def delete_todo(self) -> None:
        todo_id = parse_id(self._read("Enter the id of the todo item to delete: "))
        if todo_id is None:
            self._write(INVALID_ID_MESSAGE)
            return
        try:
            removed = self._repo.delete(todo_id)
        except TodoAppError as exc:
            self._failed("delete todo item", exc)
            return
        self._write("Todo item deleted." if removed else NOT_FOUND_MESSAGE)

    def run(self) -> None:
        """Loop until the user picks 0, closes stdin or presses Ctrl+C."""
        actions = {
            "1": self.list_todos,
            "2": self.create_todo,
            "3": self.complete_todo,
            "4": self.delete_todo,
        }

        self._write("==============================")
        self._write("        TODO LIST (CLI)        ")
        self._write("==============================")
        self._write("")

        while True:
            for line in MENU_LINES:
                self._write(line)
            try:
                choice = self._read("Select an option: ").strip()
                self._write("")
                if choice == "0":
                    break
                action = actions.get(choice)
                if action is None:
                    self._write("Unknown option. Please select one of the available commands.")
                else:
                    action()
            except (EOFError, KeyboardInterrupt):
                logger.info("Console input closed, exiting.")
                self._write("")
                break
            self._write("")

        self._write("Goodbye!")


# PUBLIC_INTERFACE
def run_menu(repository: Repository, read_line: Optional[ReadLine] = None, write: Optional[Write] = None) -> None:
    """Run the interactive menu against ``repository`` until the user exits."""
    TodoMenu(repository, read_line=read_line, write=write).run()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-cli", description="Manage todo items from the console.")
    parser.add_argument("--db-path", help="SQLite database file (overrides TODO_DB_PATH)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level for stderr (default WARNING)")
    return parser


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``todo-cli``."""
    args = _build_parser().parse_args(argv)
    setup_logging(args.log_level)
    settings = get_settings()

    try:
        repository = SQLiteRepository(args.db_path or settings.db_path, timeout=settings.db_timeout)
    except StorageUnavailable as exc:
        logger.error("Cannot open task store: %s", exc)
        print(f"Failed to open the todo database: {exc}")
        return 1

    run_menu(repository)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
