"""SQLite driver executing the SQL side of each lesson."""

import contextlib
import datetime
import sqlite3
import time
from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlguide.core.result import QueryResult
from sqlguide.exceptions import QueryExecutionError, SchemaReferenceError, SQLParsingError
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable, Sequence

__all__ = ("SqliteCursor", "SqliteDriver", "sqlite_type_coercion_map")

logger = get_logger("adapters.sqlite")

sqlite_type_coercion_map: "dict[type, Callable[[Any], Any]]" = {
    bool: int,
    Decimal: float,
    datetime.date: lambda v: v.isoformat(),
    datetime.datetime: lambda v: v.isoformat(),
}

_SCHEMA_ERROR_MARKERS = ("no such table", "no such column", "has no column named")


class SqliteCursor:
    """Context manager for SQLite cursor management."""

    def __init__(self, connection: "sqlite3.Connection") -> None:
        self.connection = connection
        self.cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "sqlite3.Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(sqlite3.Error):
                self.cursor.close()


class SqliteDriver:
    """Synchronous SQLite driver returning :class:`QueryResult` objects."""

    dialect = "sqlite"

    def __init__(
        self,
        connection: "sqlite3.Connection",
        type_coercion_map: "Optional[dict[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        self.connection = connection
        self.type_coercion_map = type_coercion_map if type_coercion_map is not None else sqlite_type_coercion_map

    def with_cursor(self, connection: "sqlite3.Connection") -> "SqliteCursor":
        return SqliteCursor(connection)

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Wrap SQLite exceptions in sqlguide exceptions."""
        try:
            yield
        except sqlite3.OperationalError as e:
            message = str(e)
            lowered = message.lower()
            if any(marker in lowered for marker in _SCHEMA_ERROR_MARKERS):
                msg = f"SQLite schema error: {message}"
                raise SchemaReferenceError(msg) from e
            if "syntax error" in lowered or "incomplete input" in lowered:
                msg = f"SQL parsing failed: {message}"
                raise SQLParsingError(msg) from e
            msg = f"SQLite database error: {message}"
            raise QueryExecutionError(msg) from e
        except sqlite3.Error as e:
            msg = f"SQLite database error: {e}"
            raise QueryExecutionError(msg) from e

    def _coerce_value(self, value: Any) -> Any:
        coercer = self.type_coercion_map.get(type(value))
        return coercer(value) if coercer is not None else value

    def prepare_parameters(self, parameters: "Optional[Sequence[Any]]") -> "tuple[Any, ...]":
        """Apply the type coercion map to positional parameters."""
        if not parameters:
            return ()
        return tuple(self._coerce_value(value) for value in parameters)

    def execute(self, sql: str, parameters: "Optional[Sequence[Any]]" = None) -> QueryResult:
        """Execute one statement.

        Args:
            sql: SQL text using ``?`` placeholders.
            parameters: Positional parameters.

        Returns:
            The fetched rows for row-returning statements, an empty result otherwise.
        """
        start = time.perf_counter()
        with self.handle_database_exceptions(), self.with_cursor(self.connection) as cursor:
            cursor.execute(sql, self.prepare_parameters(parameters))
            if cursor.description is None:
                return QueryResult((), (), statement=sql, execution_time=time.perf_counter() - start)
            rows = cursor.fetchall()
            columns = [column[0] for column in cursor.description]
        elapsed = time.perf_counter() - start
        logger.debug("Executed SQL returning %d row(s) in %.3fms", len(rows), elapsed * 1000)
        return QueryResult(columns, rows, statement=sql, execution_time=elapsed)

    def execute_many(self, sql: str, parameters: "Iterable[Sequence[Any]]") -> int:
        """Execute one statement once per parameter set.

        Returns:
            Number of rows affected.
        """
        with self.handle_database_exceptions(), self.with_cursor(self.connection) as cursor:
            cursor.executemany(sql, [self.prepare_parameters(row) for row in parameters])
            return cursor.rowcount or 0

    def select_value(self, sql: str, parameters: "Optional[Sequence[Any]]" = None) -> Any:
        """Execute a statement and return the first column of its first row."""
        return self.execute(sql, parameters).scalar()

    def commit(self) -> None:
        """Commit the current transaction."""
        self.connection.commit()
