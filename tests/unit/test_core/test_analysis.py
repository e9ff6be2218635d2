"""Unit tests for the sqlglot-based SQL analysis helpers."""

import pytest

from sqlguide.adapters.sqlalchemy.models import schema_columns
from sqlguide.core.analysis import (
    check_schema,
    format_sql,
    has_order_by,
    parse_statement,
)
from sqlguide.exceptions import SQLParsingError
from sqlguide.guide import Catalog

SCHEMA = schema_columns()

JOIN_SQL = """
SELECT c.firstName, c.lastName, p.itemName
FROM purchase AS p
JOIN customer AS c ON p.customerId = c.customerId
WHERE p.price > 50
"""


def test_parse_statement() -> None:
    """Test a single statement parses, trailing semicolon included."""
    parsed = parse_statement("SELECT * FROM customer;")
    assert parsed.sql() == "SELECT * FROM customer"


@pytest.mark.parametrize("sql", ["", "   ", "SELECT 1; SELECT 2;"])
def test_parse_statement_rejects_empty_and_multiple(sql: str) -> None:
    """Test empty text and several statements are rejected."""
    with pytest.raises(SQLParsingError):
        parse_statement(sql)


def test_parse_statement_rejects_invalid_sql() -> None:
    """Test unparsable text raises SQLParsingError."""
    with pytest.raises(SQLParsingError):
        parse_statement("SELECT * FROM customer WHERE (price > 1")


@pytest.mark.parametrize(
    "sql,expected",
    [
        ("SELECT itemName FROM purchase ORDER BY price DESC", True),
        ("SELECT itemName FROM purchase ORDER BY price DESC LIMIT 3", True),
        ("SELECT itemName FROM purchase", False),
        ("SELECT COUNT(*) FROM (SELECT itemName FROM purchase ORDER BY price) AS t", False),
    ],
)
def test_has_order_by(sql: str, expected: bool) -> None:
    """Test only an outermost ORDER BY makes a result ordered."""
    assert has_order_by(sql) is expected


def test_check_schema_accepts_valid_statements(catalog: Catalog) -> None:
    """Test every lesson only references the schema."""
    for lesson in catalog:
        assert check_schema(lesson.sql, SCHEMA) == [], lesson.slug


def test_check_schema_allows_select_aliases() -> None:
    """Test select-list aliases may be referenced by ORDER BY and HAVING."""
    sql = "SELECT customerId, SUM(price) AS total FROM purchase GROUP BY customerId ORDER BY total DESC"
    assert check_schema(sql, SCHEMA) == []
    having = "SELECT customerId, SUM(price) AS total FROM purchase GROUP BY customerId HAVING total > 100"
    assert check_schema(having, SCHEMA) == []


@pytest.mark.parametrize(
    "sql",
    [
        JOIN_SQL,
        "WITH totals AS (SELECT customerId, SUM(price) AS total FROM purchase GROUP BY customerId) "
        "SELECT t.customerId, t.total FROM totals AS t",
        "WITH totals AS (SELECT customerId, SUM(price) AS total FROM purchase GROUP BY customerId) "
        "SELECT c.firstName, total FROM customer AS c JOIN totals ON totals.customerId = c.customerId",
        "SELECT t.total FROM (SELECT SUM(price) AS total FROM purchase) AS t",
        "SELECT t.* FROM (SELECT * FROM customer) AS t WHERE t.lastName = 'Croft'",
        "SELECT c.firstName FROM customer AS c "
        "WHERE EXISTS (SELECT 1 FROM purchase AS p WHERE p.customerId = c.customerId)",
    ],
)
def test_check_schema_resolves_ctes_and_subqueries(sql: str) -> None:
    """Test CTEs, derived tables and correlated subqueries are valid sources."""
    assert check_schema(sql, SCHEMA) == []


@pytest.mark.parametrize(
    "sql,problem",
    [
        ("SELECT * FROM customers", "unknown table 'customers'"),
        ("SELECT email FROM customer", "unknown column 'email'"),
        ("SELECT c.email FROM customer AS c", "table 'customer' has no column 'email'"),
        ("SELECT x.firstName FROM customer AS c", "unknown table or alias 'x'"),
        ("WITH t AS (SELECT itemName FROM purchase) SELECT t.price FROM t", "table 't' has no column 'price'"),
        ("WITH t AS (SELECT * FROM purchases) SELECT itemName FROM t", "unknown table 'purchases'"),
        ("SELECT d.total FROM (SELECT SUM(price) AS spent FROM purchase) AS d", "has no column 'total'"),
    ],
)
def test_check_schema_reports_unknown_references(sql: str, problem: str) -> None:
    """Test unknown tables and columns are reported."""
    problems = check_schema(sql, SCHEMA)
    assert any(problem in found for found in problems), problems


def test_check_schema_is_case_insensitive() -> None:
    """Test identifiers compare case-insensitively, as in SQLite."""
    assert check_schema("SELECT FIRSTNAME FROM Customer", SCHEMA) == []


def test_format_sql_transpiles() -> None:
    """Test statements are re-emitted in another dialect."""
    formatted = format_sql("SELECT itemName FROM purchase LIMIT 3", "sqlite", "tsql", pretty=False)
    assert formatted == "SELECT TOP 3 itemName FROM purchase"


def test_format_sql_pretty() -> None:
    """Test pretty output spans several lines."""
    formatted = format_sql("SELECT itemName, price FROM purchase WHERE price > 50")
    assert formatted.splitlines()[0] == "SELECT"
