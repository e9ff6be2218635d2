"""Static analysis of lesson SQL with sqlglot.

Nothing here executes SQL. Statements are parsed to check the tables and
columns they reference, to decide whether their result order is meaningful,
and to re-emit them in another dialect for rendering.
"""

from typing import TYPE_CHECKING, Optional, Union

import sqlglot
from sqlglot import expressions as exp
from sqlglot.errors import SqlglotError
from sqlglot.optimizer.scope import traverse_scope

from sqlguide.exceptions import SQLParsingError
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlglot.optimizer.scope import Scope

__all__ = (
    "check_schema",
    "format_sql",
    "has_order_by",
    "parse_statement",
)

logger = get_logger("core.analysis")


def parse_statement(sql: str, dialect: Optional[str] = "sqlite") -> exp.Expression:
    """Parse a single SQL statement.

    Args:
        sql: SQL text.
        dialect: Dialect to read.

    Raises:
        SQLParsingError: If the text is empty, does not parse, or holds more than one statement.

    Returns:
        The parsed expression tree.
    """
    if not sql or not sql.strip():
        msg = "Cannot parse an empty SQL statement"
        raise SQLParsingError(msg)
    try:
        statements = [statement for statement in sqlglot.parse(sql, read=dialect) if statement is not None]
    except SqlglotError as e:
        msg = f"Failed to parse SQL: {e}"
        raise SQLParsingError(msg) from e
    if len(statements) != 1:
        msg = f"Expected exactly one SQL statement, found {len(statements)}"
        raise SQLParsingError(msg)
    return statements[0]


def has_order_by(sql: str, dialect: Optional[str] = "sqlite") -> bool:
    """Whether the outermost query has an ``ORDER BY`` clause."""
    parsed = parse_statement(sql, dialect)
    return parsed.args.get("order") is not None


def _source_columns(source: "Union[exp.Table, Scope]", known: "dict[str, set[str]]") -> "Optional[set[str]]":
    """Columns a table, CTE or derived table exposes; None when they cannot be listed."""
    if isinstance(source, exp.Table):
        return known.get(source.name.lower())
    if source.outer_columns:
        return {name.lower() for name in source.outer_columns}
    if source.expression.is_star:
        return None
    return {name.lower() for name in source.expression.named_selects}


def _find_source(scope: "Optional[Scope]", qualifier: str) -> "Optional[Union[exp.Table, Scope]]":
    """Resolve a table qualifier in a scope, then in its enclosing scopes."""
    while scope is not None:
        for name, source in scope.sources.items():
            if name.lower() == qualifier:
                return source
        scope = scope.parent
    return None


def _check_column(
    column: exp.Column, scope: "Scope", known: "dict[str, set[str]]", aliases: "set[str]", dialect: Optional[str]
) -> "Optional[str]":
    column_name = column.name.lower()
    if column.table:
        source = _find_source(scope, column.table.lower())
        if source is None:
            return f"unknown table or alias '{column.table}' in '{column.sql(dialect=dialect)}'"
        columns = _source_columns(source, known)
        if columns is not None and column_name not in columns:
            owner = source.name.lower() if isinstance(source, exp.Table) else column.table
            return f"table '{owner}' has no column '{column.name}'"
        return None
    current: "Optional[Scope]" = scope
    while current is not None:
        for source in current.sources.values():
            columns = _source_columns(source, known)
            if columns is None or column_name in columns:
                return None
        current = current.parent
    if column_name in aliases:
        return None
    return f"unknown column '{column.name}'"


def check_schema(sql: str, schema: "Mapping[str, Sequence[str]]", dialect: Optional[str] = "sqlite") -> "list[str]":
    """Find references to tables and columns the schema does not define.

    References are resolved scope by scope with sqlglot's scope traversal, so
    CTE names and derived-table aliases are valid sources exposing the columns
    their queries select. Correlated subqueries may refer to enclosing
    queries. Identifiers are compared case-insensitively, as SQLite does.
    Aliases defined in the select list may be referenced by unqualified
    columns (``ORDER BY total``, ``HAVING total > 100``).

    Args:
        sql: SQL text.
        schema: Mapping of table name to its column names.
        dialect: Dialect to read.

    Raises:
        SQLParsingError: If the statement does not parse.

    Returns:
        One message per problem; empty when every reference resolves.
    """
    parsed = parse_statement(sql, dialect)
    known = {table.lower(): {column.lower() for column in columns} for table, columns in schema.items()}
    problems: list[str] = []

    for scope in traverse_scope(parsed):
        if not isinstance(scope.expression, exp.Select):
            continue
        problems.extend(
            f"unknown table '{source.name}'"
            for source in scope.sources.values()
            if isinstance(source, exp.Table) and source.name.lower() not in known
        )
        aliases = {name.lower() for name in scope.expression.named_selects}
        for column in scope.columns:
            if isinstance(column.this, exp.Star):
                continue
            if problem := _check_column(column, scope, known, aliases, dialect):
                problems.append(problem)

    problems = list(dict.fromkeys(problems))
    if problems:
        logger.debug("Schema check found %d problem(s)", len(problems))
    return problems


def format_sql(
    sql: str, read: Optional[str] = "sqlite", write: Optional[str] = None, *, pretty: bool = True
) -> str:
    """Re-emit a statement, optionally transpiled into another dialect.

    Args:
        sql: SQL text.
        read: Dialect the text is written in.
        write: Dialect to generate. Defaults to ``read``.
        pretty: Format over multiple indented lines.

    Raises:
        SQLParsingError: If sqlglot cannot parse or generate the statement.

    Returns:
        The generated SQL text.
    """
    try:
        return sqlglot.transpile(sql, read=read, write=write or read, pretty=pretty)[0]
    except SqlglotError as e:
        msg = f"Failed to transpile SQL from {read} to {write or read}: {e}"
        raise SQLParsingError(msg) from e
