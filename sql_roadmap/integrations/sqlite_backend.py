"""In-memory SQLite backend used to execute curriculum examples.

The backend owns a single connection for the whole run. Statements are bounded
by a wall-clock deadline enforced through SQLite's progress handler: once the
deadline passes the handler asks SQLite to interrupt the statement, which then
fails with ``OperationalError("interrupted")``.
"""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence


class StatementTimeout(Exception):
    """Raised when a statement is interrupted by the execution deadline."""

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"statement exceeded {timeout_s:g}s")
        self.timeout_s = timeout_s


def _reject_duplicate_columns(description: Sequence[Sequence[Any]] | None) -> None:
    names = [column[0] for column in description or ()]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise sqlite3.ProgrammingError(
            f"Ambiguous result column name(s): {', '.join(duplicates)}; alias them with AS"
        )


@dataclass(slots=True)
class InMemorySQLiteBackend:
    """SQLite connection wrapper that returns rows as column mappings."""

    database: str = ":memory:"
    timeout_s: float | None = None
    progress_interval: int = 1000
    _connection: sqlite3.Connection | None = field(init=False, default=None)
    _deadline: float | None = field(init=False, default=None)

    def __enter__(self) -> InMemorySQLiteBackend:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> None:
        """Acquire the connection. Calling it twice is a no-op."""

        if self._connection is not None:
            return
        connection = sqlite3.connect(self.database)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = OFF")
        self._connection = connection

    def close(self) -> None:
        """Release the connection."""

        if self._connection is None:
            return
        self._connection.close()
        self._connection = None

    def run(self, statement: str) -> list[dict[str, Any]]:
        """Execute *statement* and return its rows in backend order."""

        connection = self._require_connection()
        self._arm_deadline(connection)
        try:
            cursor = connection.execute(statement)
            _reject_duplicate_columns(cursor.description)
            rows = cursor.fetchall()
        except sqlite3.OperationalError as exc:
            if self._deadline_passed() and "interrupt" in str(exc).lower():
                raise StatementTimeout(float(self.timeout_s or 0)) from exc
            raise
        finally:
            self._disarm_deadline(connection)
        return [dict(row) for row in rows]

    def execute_script(self, script: str) -> None:
        """Run DDL statements outside the per-query deadline."""

        self._require_connection().executescript(script)

    def insert_many(self, statement: str, rows: Iterable[Sequence[Any]]) -> int:
        """Insert *rows* within a single transaction and return the row count."""

        connection = self._require_connection()
        materialised = list(rows)
        with connection:
            connection.executemany(statement, materialised)
        return len(materialised)

    def freeze(self) -> None:
        """Reject any further writes on this connection."""

        self._require_connection().execute("PRAGMA query_only = ON")

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise sqlite3.ProgrammingError("Backend connection is not open")
        return self._connection

    def _arm_deadline(self, connection: sqlite3.Connection) -> None:
        if not self.timeout_s:
            return
        self._deadline = time.monotonic() + self.timeout_s
        connection.set_progress_handler(self._check_deadline, self.progress_interval)

    def _disarm_deadline(self, connection: sqlite3.Connection) -> None:
        if self._deadline is None:
            return
        connection.set_progress_handler(None, 0)
        self._deadline = None

    def _check_deadline(self) -> int:
        return 1 if self._deadline_passed() else 0

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline
