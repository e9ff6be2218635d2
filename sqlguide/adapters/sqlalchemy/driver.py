"""SQLAlchemy ORM driver executing the query-builder side of each lesson."""

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable

from sqlalchemy import Select, inspect
from sqlalchemy.exc import ArgumentError, CompileError, InvalidRequestError, OperationalError, SQLAlchemyError

from sqlguide.core.result import QueryResult
from sqlguide.exceptions import QueryExecutionError, SchemaReferenceError, SQLBuilderError
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

    from sqlalchemy.orm import Session

__all__ = ("SqlalchemyDriver",)

logger = get_logger("adapters.sqlalchemy")

_SCHEMA_ERROR_MARKERS = ("no such table", "no such column")


class SqlalchemyDriver:
    """Runs SQLAlchemy ``Select`` statements through an ORM session."""

    def __init__(self, session: "Session") -> None:
        self.session = session

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Wrap SQLAlchemy exceptions in sqlguide exceptions."""
        try:
            yield
        except OperationalError as e:
            message = str(e.orig) if e.orig is not None else str(e)
            if any(marker in message.lower() for marker in _SCHEMA_ERROR_MARKERS):
                msg = f"SQLite schema error: {message}"
                raise SchemaReferenceError(msg) from e
            msg = f"Database error: {message}"
            raise QueryExecutionError(msg) from e
        except (ArgumentError, CompileError, InvalidRequestError) as e:
            msg = f"Invalid query-builder statement: {e}"
            raise SQLBuilderError(msg) from e
        except SQLAlchemyError as e:
            msg = f"Database error: {e}"
            raise QueryExecutionError(msg) from e

    def build(self, builder: "Callable[[], Any]") -> "Select[Any]":
        """Call a builder and check that it produced a ``Select``.

        Raises:
            SQLBuilderError: If the builder fails or returns something else.
        """
        try:
            statement = builder()
        except (AttributeError, TypeError, ArgumentError, InvalidRequestError) as e:
            msg = f"Builder {getattr(builder, '__name__', builder)!r} failed: {e}"
            raise SQLBuilderError(msg) from e
        if not isinstance(statement, Select):
            msg = f"Builder {getattr(builder, '__name__', builder)!r} returned {type(statement).__name__}, not a Select"
            raise SQLBuilderError(msg)
        return statement

    def compile(self, statement: "Select[Any]") -> str:
        """Render the SQL SQLAlchemy emits for a statement, with parameters inlined."""
        with self.handle_database_exceptions():
            compiled = statement.compile(dialect=self.session.get_bind().dialect, compile_kwargs={"literal_binds": True})
        return str(compiled)

    @staticmethod
    def _expanders(statement: "Select[Any]") -> "list[Sequence[str] | None]":
        """For each select-list entry, the mapped attribute keys of a whole entity or None for a column."""
        expanders: list[Sequence[str] | None] = []
        for description in statement.column_descriptions:
            entity = description.get("entity")
            if entity is not None and description.get("expr") is entity:
                mapper = inspect(entity).mapper
                expanders.append([attribute.key for attribute in mapper.column_attrs])
            else:
                expanders.append(None)
        return expanders

    def execute(self, statement: "Select[Any]") -> QueryResult:
        """Execute a statement.

        Whole-entity entries such as ``select(Customer)`` are expanded into their
        mapped columns, in declaration order, so the rows line up with the rows
        of ``SELECT * FROM customer``.

        Returns:
            The fetched rows.
        """
        expanders = self._expanders(statement)
        start = time.perf_counter()
        with self.handle_database_exceptions():
            result = self.session.execute(statement)
            keys = list(result.keys())
            fetched = result.all()
        elapsed = time.perf_counter() - start

        columns: list[str] = []
        for key, attributes in zip(keys, expanders):
            columns.extend(attributes if attributes is not None else [key])
        rows = []
        for fetched_row in fetched:
            row: list[Any] = []
            for value, attributes in zip(fetched_row, expanders):
                if attributes is None:
                    row.append(value)
                else:
                    row.extend(getattr(value, key) if value is not None else None for key in attributes)
            rows.append(row)

        logger.debug("Executed builder statement returning %d row(s) in %.3fms", len(rows), elapsed * 1000)
        return QueryResult(columns, rows, statement=self.compile(statement), execution_time=elapsed)

    def add_all(self, instances: "Sequence[Any]") -> None:
        """Add and commit ORM instances."""
        with self.handle_database_exceptions():
            self.session.add_all(instances)
            self.session.commit()
