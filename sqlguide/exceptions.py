from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = (
    "DatasetIntegrityError",
    "ExecutionMismatchError",
    "FormattingMismatchError",
    "GuideValidationError",
    "ImproperConfigurationError",
    "LessonError",
    "LessonValidationError",
    "QueryExecutionError",
    "SQLBuilderError",
    "SQLFileNotFoundError",
    "SQLFileParseError",
    "SQLGuideError",
    "SQLParsingError",
    "SchemaMismatchError",
    "SchemaReferenceError",
)


class SQLGuideError(Exception):
    """Base exception class from which all sqlguide exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLGuideError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLGuideError):
    """Raised when a configuration value is missing or invalid."""


class SQLParsingError(SQLGuideError):
    """Issues parsing SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing SQL statement."
        super().__init__(message)


class SQLBuilderError(SQLGuideError):
    """Issues building or compiling a query-builder statement."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class QueryExecutionError(SQLGuideError):
    """Raised when the database rejects a statement."""


class SchemaReferenceError(QueryExecutionError):
    """Raised when the database reports an unknown table or column."""


class SQLFileNotFoundError(SQLGuideError):
    """Raised when a SQL file or a named statement cannot be found."""

    def __init__(self, name: str, path: "Optional[str]" = None) -> None:
        if path:
            message = f"SQL file '{name}' not found at path: {path}"
        else:
            message = f"SQL file '{name}' not found"
        super().__init__(message)
        self.name = name
        self.path = path


class SQLFileParseError(SQLGuideError):
    """Raised when a SQL file cannot be read or holds no valid named statements."""

    def __init__(self, name: str, path: str, original_error: "Exception") -> None:
        message = f"Failed to parse SQL file '{name}' at {path}: {original_error}"
        super().__init__(message)
        self.name = name
        self.path = path
        self.original_error = original_error


class DatasetIntegrityError(SQLGuideError):
    """Raised when the sample dataset breaks one of its invariants."""


class LessonError(SQLGuideError):
    """Raised when a lesson definition is incomplete."""

    def __init__(self, slug: str, message: str) -> None:
        super().__init__(f"Lesson '{slug}': {message}")
        self.slug = slug


# -- Validation Errors --
class LessonValidationError(SQLGuideError):
    """Base class for a lesson whose documented equivalence does not hold."""

    slug: str
    sql: Optional[str]

    def __init__(self, slug: str, message: str, sql: Optional[str] = None) -> None:
        detail_message = f"Lesson '{slug}': {message}"
        if sql:
            detail_message = f"{detail_message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.slug = slug
        self.sql = sql


class SchemaMismatchError(LessonValidationError):
    """A statement references a table or column the schema does not define."""


class ExecutionMismatchError(LessonValidationError):
    """The SQL statement and its query-builder equivalent return different results."""


class FormattingMismatchError(LessonValidationError):
    """The documented result table does not match the executed result."""


class GuideValidationError(SQLGuideError):
    """Raised when one or more lessons fail validation."""

    def __init__(self, failures: "Sequence[LessonValidationError]") -> None:
        self.failures = tuple(failures)
        slugs = ", ".join(failure.slug for failure in self.failures)
        super().__init__(f"{len(self.failures)} lesson(s) failed validation: {slugs}")
