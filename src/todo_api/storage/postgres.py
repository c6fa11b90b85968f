"""PostgreSQL-backed storage with a bounded connection pool."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from todo_api.storage.base import StorageError
from todo_api.storage.models import Todo

_COLUMNS = "id, task, completed"


class PostgresTodoStorage:
    """Persist todos in PostgreSQL through a psycopg connection pool."""

    def __init__(
        self,
        database_url: str,
        *,
        max_connections: int = 10,
        timeout_s: float = 5.0,
    ) -> None:
        if not database_url:
            raise ValueError("TODO_API_DATABASE_URL is required")
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.database_url = database_url
        self.timeout_s = timeout_s
        self._psycopg, dict_row, pool_class = self._load_psycopg()
        # The pool stays closed until migrate() so construction never touches the network.
        self._pool = pool_class(
            database_url,
            min_size=1,
            max_size=max_connections,
            kwargs={"row_factory": dict_row},
            timeout=timeout_s,
            open=False,
        )
        self._opened = False

    def migrate(self) -> None:
        if not self._opened:
            try:
                self._pool.open(wait=True, timeout=self.timeout_s)
            except self._psycopg.Error as exc:
                self._pool.close()
                raise StorageError(f"Cannot connect to PostgreSQL: {exc}") from exc
            self._opened = True
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS todos (
                    id BIGSERIAL PRIMARY KEY,
                    task TEXT NOT NULL,
                    completed BOOLEAN NOT NULL DEFAULT FALSE
                )
                """)

    def create_todo(self, task: str, completed: bool = False) -> Todo:
        with self._connect() as conn:
            row = conn.execute(
                f"INSERT INTO todos (task, completed) VALUES (%s, %s) RETURNING {_COLUMNS}",
                (task, completed),
            ).fetchone()
        if row is None:
            raise StorageError("Insert did not return the created todo")
        return self._row_to_todo(row)

    def list_todos(self) -> list[Todo]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM todos ORDER BY id").fetchall()
        return [self._row_to_todo(row) for row in rows]

    def get_todo(self, todo_id: int) -> Todo | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM todos WHERE id = %s",
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
        with self._connect() as conn:
            row = conn.execute(
                f"""
                UPDATE todos
                SET task = COALESCE(%s::text, task),
                    completed = COALESCE(%s::boolean, completed)
                WHERE id = %s
                RETURNING {_COLUMNS}
                """,
                (task, completed, todo_id),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_todo(row)

    def delete_todo(self, todo_id: int) -> bool:
        with self._connect() as conn:
            deleted = conn.execute("DELETE FROM todos WHERE id = %s", (todo_id,)).rowcount
        return deleted > 0

    def close(self) -> None:
        if self._opened:
            self._pool.close()
            self._opened = False

    @contextmanager
    def _connect(self) -> Iterator[Any]:
        """Borrow a pooled connection; the pool commits on success and rolls back on error."""
        try:
            with self._pool.connection() as conn:
                yield conn
        except self._psycopg.Error as exc:
            raise StorageError(f"PostgreSQL operation failed: {exc}") from exc

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any]:
        try:
            import psycopg
            from psycopg.rows import dict_row
            from psycopg_pool import ConnectionPool
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "PostgreSQL storage requires psycopg. "
                'Install with: python -m pip install "psycopg[binary,pool]>=3.2,<4.0"'
            ) from exc
        return psycopg, dict_row, ConnectionPool

    @staticmethod
    def _row_to_todo(row: Any) -> Todo:
        return Todo(id=int(row["id"]), task=row["task"], completed=bool(row["completed"]))
