"""Execution-independent building blocks: results and static SQL analysis."""

from sqlguide.core.analysis import (
    check_schema,
    format_sql,
    has_order_by,
    parse_statement,
)
from sqlguide.core.result import QueryResult, normalize_value

__all__ = (
    "QueryResult",
    "check_schema",
    "format_sql",
    "has_order_by",
    "normalize_value",
    "parse_statement",
)
