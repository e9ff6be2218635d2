"""sqlguide: a validated guide from SQL queries to SQLAlchemy statements."""

from sqlguide import core, exceptions, guide, loader, utils
from sqlguide.__metadata__ import __version__
from sqlguide.config import GuideConfig
from sqlguide.core.result import QueryResult
from sqlguide.exceptions import (
    ExecutionMismatchError,
    FormattingMismatchError,
    GuideValidationError,
    LessonValidationError,
    SchemaMismatchError,
    SQLGuideError,
)
from sqlguide.guide import Catalog, GuideValidator, build_guide, load_guide, validate_guide
from sqlguide.loader import SQLFile, SQLFileLoader

__all__ = (
    "Catalog",
    "ExecutionMismatchError",
    "FormattingMismatchError",
    "GuideConfig",
    "GuideValidationError",
    "GuideValidator",
    "LessonValidationError",
    "QueryResult",
    "SQLFile",
    "SQLFileLoader",
    "SQLGuideError",
    "SchemaMismatchError",
    "__version__",
    "build_guide",
    "core",
    "exceptions",
    "guide",
    "load_guide",
    "loader",
    "utils",
    "validate_guide",
)
