import pytest

from sqlguide.exceptions import (
    DatasetIntegrityError,
    ExecutionMismatchError,
    FormattingMismatchError,
    GuideValidationError,
    ImproperConfigurationError,
    LessonError,
    LessonValidationError,
    QueryExecutionError,
    SchemaMismatchError,
    SchemaReferenceError,
    SQLBuilderError,
    SQLFileNotFoundError,
    SQLFileParseError,
    SQLGuideError,
    SQLParsingError,
)


def test_exception_hierarchy() -> None:
    """Test exception classes inherit correctly."""
    for exc_type in (
        ImproperConfigurationError,
        SQLParsingError,
        SQLBuilderError,
        QueryExecutionError,
        SQLFileNotFoundError,
        SQLFileParseError,
        DatasetIntegrityError,
        LessonError,
        LessonValidationError,
        GuideValidationError,
    ):
        assert issubclass(exc_type, SQLGuideError)

    assert issubclass(SchemaReferenceError, QueryExecutionError)
    assert issubclass(SchemaMismatchError, LessonValidationError)
    assert issubclass(ExecutionMismatchError, LessonValidationError)
    assert issubclass(FormattingMismatchError, LessonValidationError)


def test_exception_detail() -> None:
    """Test the first argument becomes the detail."""
    exc = QueryExecutionError("no such table: customers")
    assert exc.detail == "no such table: customers"
    assert str(exc) == "no such table: customers"
    assert repr(exc) == "QueryExecutionError - no such table: customers"


def test_exception_without_message() -> None:
    """Test exceptions fall back to their default messages."""
    assert str(SQLParsingError()) == "Issues parsing SQL statement."
    assert str(SQLBuilderError()) == "Issues building SQL statement."
    assert repr(DatasetIntegrityError()) == "DatasetIntegrityError"


def test_lesson_validation_error_carries_slug_and_sql() -> None:
    """Test lesson validation errors name the lesson and its SQL."""
    exc = SchemaMismatchError("count_customers", "unknown column 'email'", sql="SELECT email FROM customer;")

    assert exc.slug == "count_customers"
    assert exc.sql == "SELECT email FROM customer;"
    assert exc.detail.startswith("Lesson 'count_customers': unknown column 'email'")
    assert "SQL: SELECT email FROM customer;" in exc.detail


def test_guide_validation_error_aggregates_failures() -> None:
    """Test the aggregate error keeps every failure."""
    failures = [
        ExecutionMismatchError("big_spenders", "rows differ"),
        FormattingMismatchError("count_customers", "documented rows differ"),
    ]
    exc = GuideValidationError(failures)

    assert exc.failures == tuple(failures)
    assert str(exc) == "2 lesson(s) failed validation: big_spenders, count_customers"


def test_sql_file_errors() -> None:
    """Test SQL file errors describe the file."""
    not_found = SQLFileNotFoundError("lessons.sql", path="/tmp/queries/lessons.sql")
    assert not_found.name == "lessons.sql"
    assert "/tmp/queries/lessons.sql" in str(not_found)

    parse_error = SQLFileParseError("lessons.sql", "/tmp/lessons.sql", ValueError("bad"))
    assert parse_error.original_error.args == ("bad",)
    assert "bad" in str(parse_error)


def test_exception_chaining() -> None:
    """Test exceptions support chaining with 'from'."""
    with pytest.raises(SQLBuilderError) as exc_info:
        try:
            raise AttributeError("type object 'Customer' has no attribute 'email'")
        except AttributeError as e:
            raise SQLBuilderError("Builder failed") from e

    assert isinstance(exc_info.value.__cause__, AttributeError)
