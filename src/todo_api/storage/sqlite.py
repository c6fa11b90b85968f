"""SQLite-backed storage for todo records.

Beginner terms:
- Busy timeout: how long a connection waits for another writer's file lock.
- WAL (write-ahead log): journal mode that lets readers run while one writer commits.
- RETURNING: SQL clause that hands back the written row from the same statement.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from todo_api.storage.base import StorageError
from todo_api.storage.models import Todo

_COLUMNS = "id, task, completed"


class SqliteTodoStorage:
    """Persist todos in a SQLite database file.

    Each operation opens its own connection and runs one statement, so the
    only shared state between requests is the database file itself. A bounded
    semaphore caps how many connections are open at once.
    """

    def __init__(
        self,
        database_path: str | Path,
        *,
        max_connections: int = 10,
        timeout_s: float = 5.0,
    ) -> None:
        if not str(database_path):
            raise ValueError("database_path is required")
        if str(database_path) == ":memory:":
            # Every operation opens a new connection, which would see a new empty database.
            raise ValueError("In-memory SQLite databases are not durable; use a file path")
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.database_path = Path(database_path).expanduser()
        self.timeout_s = timeout_s
        self._slots = threading.BoundedSemaphore(max_connections)

    def migrate(self) -> None:
        """Create the database file and the todos table if they do not exist."""
        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create database directory: {exc}") from exc
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS todos (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task TEXT NOT NULL,
                    completed BOOLEAN NOT NULL DEFAULT 0
                )
                """)

    def create_todo(self, task: str, completed: bool = False) -> Todo:
        with self._connect() as conn:
            # fetchall() steps RETURNING statements to completion before commit.
            rows = conn.execute(
                f"INSERT INTO todos (task, completed) VALUES (?, ?) RETURNING {_COLUMNS}",
                (task, completed),
            ).fetchall()
        if not rows:
            raise StorageError("Insert did not return the created todo")
        return self._row_to_todo(rows[0])

    def list_todos(self) -> list[Todo]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM todos ORDER BY id").fetchall()
        return [self._row_to_todo(row) for row in rows]

    def get_todo(self, todo_id: int) -> Todo | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM todos WHERE id = ?",
                (todo_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_todo(row)

    def update_todo(
        self,
        todo_id: int,
        *,
        task: str | None = None,
        completed: bool | None = None,
    ) -> Todo | None:
        """Apply only the supplied fields; ``None`` leaves a column unchanged."""
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                UPDATE todos
                SET task = COALESCE(?, task),
                    completed = COALESCE(?, completed)
                WHERE id = ?
                RETURNING {_COLUMNS}
                """,
                (task, completed, todo_id),
            ).fetchall()
        if not rows:
            return None
        return self._row_to_todo(rows[0])

    def delete_todo(self, todo_id: int) -> bool:
        with self._connect() as conn:
            deleted = conn.execute("DELETE FROM todos WHERE id = ?", (todo_id,)).rowcount
        return deleted > 0

    def close(self) -> None:
        return None

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, then commit and close it."""
        with self._slots:
            try:
                conn = sqlite3.connect(self.database_path, timeout=self.timeout_s)
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot open SQLite database: {exc}") from exc
            conn.row_factory = sqlite3.Row
            try:
                # The connection context manager commits on success, rolls back on error.
                with conn:
                    yield conn
            except sqlite3.Error as exc:
                raise StorageError(f"SQLite operation failed: {exc}") from exc
            finally:
                conn.close()

    @staticmethod
    def _row_to_todo(row: Any) -> Todo:
        return Todo(id=int(row["id"]), task=row["task"], completed=bool(row["completed"]))
