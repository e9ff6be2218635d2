"""Executes both sides of every lesson and checks the documented equivalences.

For each lesson the validator checks, in order:

1. the SQL only references tables and columns of the schema;
2. the SQL runs against SQLite seeded with the dataset;
3. the builder produces a statement that runs through the SQLAlchemy ORM;
4. both forms return the same columns and rows (in order when the SQL has an
   ``ORDER BY``, as a multiset otherwise);
5. the documented table matches what was returned.

A failure stops the checks for that lesson and is recorded in the report.
"""

import logging
import time
from collections import Counter
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from sqlguide.adapters.sqlalchemy.config import SqlalchemyConfig
from sqlguide.adapters.sqlalchemy.models import schema_columns
from sqlguide.adapters.sqlite.config import SqliteConfig
from sqlguide.core.analysis import check_schema
from sqlguide.core.result import QueryResult, normalize_value
from sqlguide.exceptions import (
    DatasetIntegrityError,
    ExecutionMismatchError,
    FormattingMismatchError,
    GuideValidationError,
    LessonValidationError,
    SchemaMismatchError,
    SchemaReferenceError,
    SQLBuilderError,
    SQLGuideError,
)
from sqlguide.guide.dataset import seed_orm, seed_sqlite
from sqlguide.utils.logging import get_logger, lesson_context, lesson_phase, log_with_context

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import TracebackType

    from sqlguide.adapters.sqlalchemy.driver import SqlalchemyDriver
    from sqlguide.adapters.sqlite.driver import SqliteDriver
    from sqlguide.config import GuideConfig
    from sqlguide.guide.catalog import Catalog, ExpectedTable, Lesson
    from sqlguide.guide.dataset import Dataset

__all__ = ("GuideValidator", "LessonOutcome", "ValidationReport")

logger = get_logger("guide.validator")


@dataclass
class LessonOutcome:
    """The result of validating one lesson."""

    slug: str
    sql_result: Optional[QueryResult] = None
    builder_result: Optional[QueryResult] = None
    error: Optional[LessonValidationError] = None
    duration: float = 0.0

    @property
    def passed(self) -> bool:
        return self.error is None

    def to_dict(self) -> "dict[str, Any]":
        return {
            "slug": self.slug,
            "passed": self.passed,
            "error": self.error.detail if self.error is not None else None,
            "error_type": type(self.error).__name__ if self.error is not None else None,
            "rows": self.sql_result.num_rows if self.sql_result is not None else None,
            "duration_ms": round(self.duration * 1000, 3),
        }


@dataclass
class ValidationReport:
    """Outcomes of one validation run, in lesson order."""

    outcomes: "list[LessonOutcome]" = field(default_factory=list)

    def __iter__(self) -> "Iterator[LessonOutcome]":
        return iter(self.outcomes)

    @property
    def passed(self) -> bool:
        return all(outcome.passed for outcome in self.outcomes)

    @property
    def failures(self) -> "list[LessonValidationError]":
        return [outcome.error for outcome in self.outcomes if outcome.error is not None]

    def get(self, slug: str) -> LessonOutcome:
        for outcome in self.outcomes:
            if outcome.slug == slug:
                return outcome
        raise KeyError(slug)

    def raise_for_failures(self) -> None:
        """Raise if any lesson failed.

        Raises:
            GuideValidationError: Carrying every failure.
        """
        if failures := self.failures:
            raise GuideValidationError(failures)

    def to_dict(self) -> "dict[str, Any]":
        return {
            "passed": self.passed,
            "lessons": len(self.outcomes),
            "failures": len(self.failures),
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def _describe_rows(rows: "Sequence[tuple[Any, ...]]") -> str:
    return "[" + ", ".join(repr(tuple(str(value) for value in row)) for row in rows) + "]"


class GuideValidator:
    """Validates lessons against databases seeded with the dataset.

    Use as a context manager: entering seeds a private SQLite database for the
    SQL side and a private in-memory SQLAlchemy engine for the builder side.

    Args:
        config: Guide configuration.
        catalog: Lesson catalog; its loader also supplies the schema DDL.
        dataset: The sample dataset.
    """

    def __init__(self, config: "GuideConfig", catalog: "Catalog", dataset: "Dataset") -> None:
        self.config = config
        self.catalog = catalog
        self.dataset = dataset
        self.schema = schema_columns()
        self.sqlite_config = SqliteConfig(connection_config={"database": config.database})
        self.sqlalchemy_config = SqlalchemyConfig()
        self._exit_stack: Optional[ExitStack] = None
        self.sql_driver: Optional[SqliteDriver] = None
        self.orm_driver: Optional[SqlalchemyDriver] = None

    def __enter__(self) -> "GuideValidator":
        with ExitStack() as stack:
            self.sql_driver = stack.enter_context(self.sqlite_config.provide_session())
            stack.callback(self.sqlalchemy_config.close)
            seed_sqlite(self.sql_driver, self.catalog.loader, self.dataset)
            seed_orm(self.sqlalchemy_config, self.dataset)
            self.orm_driver = stack.enter_context(self.sqlalchemy_config.provide_session())
            self._exit_stack = stack.pop_all()
        logger.debug("Seeded SQL and ORM databases")
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close both sessions and dispose of the engine."""
        if self._exit_stack is not None:
            self._exit_stack.close()
            self._exit_stack = None
        self.sql_driver = None
        self.orm_driver = None

    def _require_drivers(self) -> "tuple[SqliteDriver, SqlalchemyDriver]":
        if self.sql_driver is None or self.orm_driver is None:
            msg = "GuideValidator must be entered before validating"
            raise RuntimeError(msg)
        return self.sql_driver, self.orm_driver

    def check_dataset(self) -> None:
        """Check the seeded SQL database against the dataset and the ORM schema.

        Raises:
            DatasetIntegrityError: If a purchase has no customer, a row count differs
                from the dataset, or the DDL columns differ from the ORM columns.
        """
        sql_driver, _ = self._require_drivers()
        orphans = sql_driver.execute(self.catalog.loader.get_query_text("orphaned_purchases"))
        if orphans.num_rows:
            msg = f"purchases without a customer: {orphans.rows}"
            raise DatasetIntegrityError(msg)
        expected_counts = {"customer": len(self.dataset.customers), "purchase": len(self.dataset.purchases)}
        for table, expected in expected_counts.items():
            count = sql_driver.select_value(f"SELECT COUNT(*) FROM {table}")  # noqa: S608
            if count != expected:
                msg = f"table {table} has {count} rows, expected {expected}"
                raise DatasetIntegrityError(msg)
        for table, columns in self.schema.items():
            ddl_columns = tuple(row[1] for row in sql_driver.execute(f"PRAGMA table_info({table})").rows)
            if ddl_columns != columns:
                msg = f"table {table} has columns {ddl_columns} in SQL but {columns} in the ORM models"
                raise DatasetIntegrityError(msg)

    def validate(self, lessons: "Optional[Sequence[Lesson]]" = None) -> ValidationReport:
        """Validate lessons, by default every lesson of the catalog.

        Returns:
            The report. Failures are recorded, not raised; see
            :meth:`ValidationReport.raise_for_failures`.
        """
        report = ValidationReport()
        for lesson in lessons if lessons is not None else self.catalog.lessons:
            report.outcomes.append(self.validate_lesson(lesson))
        log_with_context(
            logger,
            logging.INFO if report.passed else logging.ERROR,
            f"Validated {len(report.outcomes)} lesson(s), {len(report.failures)} failure(s)",
            lessons=len(report.outcomes),
            failures=len(report.failures),
        )
        return report

    def validate_lesson(self, lesson: "Lesson") -> LessonOutcome:
        """Validate one lesson."""
        outcome = LessonOutcome(slug=lesson.slug)
        start = time.perf_counter()
        with lesson_context(lesson.slug):
            try:
                self._check(lesson, outcome)
            except LessonValidationError as e:
                outcome.error = e
                logger.error("Lesson %s failed: %s", lesson.slug, e.detail)
            else:
                logger.debug("Lesson %s passed", lesson.slug)
        outcome.duration = time.perf_counter() - start
        return outcome

    def _check(self, lesson: "Lesson", outcome: LessonOutcome) -> None:
        sql_driver, orm_driver = self._require_drivers()
        places = self.config.decimal_places

        with lesson_phase("schema"):
            problems = check_schema(lesson.sql, self.schema, lesson.dialect)
        if problems:
            raise SchemaMismatchError(lesson.slug, "; ".join(problems), sql=lesson.sql)

        try:
            with lesson_phase("sql"):
                outcome.sql_result = sql_driver.execute(lesson.sql)
        except SchemaReferenceError as e:
            raise SchemaMismatchError(lesson.slug, e.detail, sql=lesson.sql) from e
        except SQLGuideError as e:
            raise ExecutionMismatchError(lesson.slug, f"SQL failed: {e.detail}", sql=lesson.sql) from e

        try:
            with lesson_phase("builder"):
                outcome.builder_result = orm_driver.execute(orm_driver.build(lesson.builder))
        except SchemaReferenceError as e:
            raise SchemaMismatchError(lesson.slug, f"builder: {e.detail}") from e
        except SQLBuilderError as e:
            if isinstance(e.__cause__, AttributeError):
                raise SchemaMismatchError(lesson.slug, e.detail) from e
            raise ExecutionMismatchError(lesson.slug, e.detail) from e
        except SQLGuideError as e:
            raise ExecutionMismatchError(lesson.slug, f"builder failed: {e.detail}") from e

        with lesson_phase("compare"):
            self._compare_results(lesson, outcome.sql_result, outcome.builder_result, places)
            self._compare_expected(lesson, lesson.expected, outcome.sql_result, places)

    @staticmethod
    def _compare_results(lesson: "Lesson", sql_result: QueryResult, builder_result: QueryResult, places: int) -> None:
        if sql_result.column_keys() != builder_result.column_keys():
            msg = f"SQL returns columns {sql_result.columns}, builder returns {builder_result.columns}"
            raise ExecutionMismatchError(lesson.slug, msg, sql=lesson.sql)
        if lesson.ordered:
            sql_rows, builder_rows = sql_result.normalized_rows(places), builder_result.normalized_rows(places)
            if sql_rows != builder_rows:
                msg = f"ordered rows differ: SQL {_describe_rows(sql_rows)}, builder {_describe_rows(builder_rows)}"
                raise ExecutionMismatchError(lesson.slug, msg, sql=lesson.sql)
        elif sql_result.row_counter(places) != builder_result.row_counter(places):
            missing = sql_result.row_counter(places) - builder_result.row_counter(places)
            extra = builder_result.row_counter(places) - sql_result.row_counter(places)
            msg = (
                f"rows differ: builder is missing {_describe_rows(list(missing.elements()))} "
                f"and adds {_describe_rows(list(extra.elements()))}"
            )
            raise ExecutionMismatchError(lesson.slug, msg, sql=lesson.sql)

    @staticmethod
    def _compare_expected(lesson: "Lesson", expected: "ExpectedTable", result: QueryResult, places: int) -> None:
        expected_keys = tuple(column.lower() for column in expected.columns)
        if expected_keys != result.column_keys():
            msg = f"documented columns {expected.columns} differ from returned columns {result.columns}"
            raise FormattingMismatchError(lesson.slug, msg)
        expected_rows = [tuple(normalize_value(value, places) for value in row) for row in expected.rows]
        actual_rows = result.normalized_rows(places)
        if lesson.ordered:
            matches = expected_rows == actual_rows
        else:
            matches = Counter(expected_rows) == Counter(actual_rows)
        if not matches:
            msg = f"documented rows {_describe_rows(expected_rows)} differ from returned rows {_describe_rows(actual_rows)}"
            raise FormattingMismatchError(lesson.slug, msg)
