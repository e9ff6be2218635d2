"""Unit tests for the SQLite configuration and driver."""

import datetime
import sqlite3
from collections.abc import Generator
from decimal import Decimal
from pathlib import Path

import pytest

from sqlguide.adapters.sqlite import SqliteConfig, SqliteConnectionParams, SqliteDriver
from sqlguide.exceptions import QueryExecutionError, SchemaReferenceError, SQLParsingError
from sqlguide.guide import Catalog, Dataset
from sqlguide.guide.dataset import seed_sqlite


@pytest.fixture
def driver() -> Generator[SqliteDriver, None, None]:
    with SqliteConfig().provide_session() as session:
        session.execute(
            "CREATE TABLE item (id INTEGER PRIMARY KEY, name TEXT, price REAL, sold TEXT, active INTEGER);"
        )
        yield session


@pytest.fixture
def seeded(catalog: Catalog, dataset: Dataset) -> Generator[SqliteDriver, None, None]:
    with SqliteConfig().provide_session() as session:
        seed_sqlite(session, catalog.loader, dataset)
        yield session


def test_memory_database_is_private() -> None:
    """Test each config gets its own in-memory database."""
    first = SqliteConfig()
    second = SqliteConfig(connection_config={"database": ":memory:"})

    assert first.database.startswith("file:memory_")
    assert first.database != second.database
    assert first.connection_config["uri"] is True


def test_file_database_kept(tmp_path: Path) -> None:
    """Test a file path is passed through unchanged."""
    params: SqliteConnectionParams = {"database": str(tmp_path / "guide.db"), "timeout": 5.0}
    config = SqliteConfig(connection_config=params)

    assert config.database == str(tmp_path / "guide.db")
    assert "uri" not in config.connection_config


def test_file_uri_enables_uri_mode() -> None:
    """Test file: URIs switch on URI mode."""
    config = SqliteConfig(connection_config={"database": "file:guide.db?mode=memory"})
    assert config.connection_config["uri"] is True


def test_foreign_keys_enabled() -> None:
    """Test connections enforce foreign keys by default."""
    with SqliteConfig().provide_connection() as connection:
        assert connection.execute("PRAGMA foreign_keys").fetchone() == (1,)
    with SqliteConfig(foreign_keys=False).provide_connection() as connection:
        assert connection.execute("PRAGMA foreign_keys").fetchone() == (0,)


def test_execute_returns_columns_and_rows(driver: SqliteDriver) -> None:
    """Test a select returns labelled rows."""
    driver.execute("INSERT INTO item (id, name, price) VALUES (?, ?, ?)", [1, "Burger", 5.0])
    result = driver.execute("SELECT id, name AS label, price FROM item")

    assert result.columns == ("id", "label", "price")
    assert result.rows == [(1, "Burger", 5.0)]
    assert result.statement == "SELECT id, name AS label, price FROM item"
    assert result.execution_time is not None


def test_execute_without_rows(driver: SqliteDriver) -> None:
    """Test statements that return nothing give an empty result."""
    result = driver.execute("DELETE FROM item")
    assert result.columns == ()
    assert result.rows == []


def test_parameters_are_coerced(driver: SqliteDriver) -> None:
    """Test decimals, dates and booleans are converted for SQLite."""
    driver.execute_many(
        "INSERT INTO item (id, name, price, sold, active) VALUES (?, ?, ?, ?, ?)",
        [
            (1, "Potion", Decimal("3.00"), datetime.date(2023, 3, 21), True),
            (2, "Crowbar", Decimal("25.00"), datetime.date(2023, 3, 15), False),
        ],
    )

    result = driver.execute("SELECT price, sold, active FROM item ORDER BY id")
    assert result.rows == [(3.0, "2023-03-21", 1), (25.0, "2023-03-15", 0)]


def test_select_value(driver: SqliteDriver) -> None:
    """Test fetching a single value."""
    assert driver.select_value("SELECT COUNT(*) FROM item") == 0


@pytest.mark.parametrize(
    "sql,error",
    [
        ("SELECT * FROM missing", SchemaReferenceError),
        ("SELECT missing FROM item", SchemaReferenceError),
        ("SELEC * FROM item", SQLParsingError),
    ],
)
def test_errors_are_wrapped(driver: SqliteDriver, sql: str, error: "type[Exception]") -> None:
    """Test SQLite errors become sqlguide errors."""
    with pytest.raises(error) as exc_info:
        driver.execute(sql)
    assert isinstance(exc_info.value.__cause__, sqlite3.Error)


def test_integrity_errors_are_wrapped(driver: SqliteDriver) -> None:
    """Test constraint violations become QueryExecutionError."""
    driver.execute("INSERT INTO item (id, name) VALUES (1, 'a')")
    with pytest.raises(QueryExecutionError) as exc_info:
        driver.execute("INSERT INTO item (id, name) VALUES (1, 'b')")
    assert not isinstance(exc_info.value, SchemaReferenceError)


def test_seeded_dataset(seeded: SqliteDriver) -> None:
    """Test the dataset seeds five customers and ten purchases."""
    assert seeded.select_value("SELECT COUNT(*) FROM customer") == 5
    assert seeded.select_value("SELECT COUNT(*) FROM purchase") == 10
    assert seeded.execute("SELECT * FROM customer WHERE customerId = 5").rows == [(5, "Lara", "Croft")]


def test_seeded_dataset_enforces_foreign_keys(seeded: SqliteDriver) -> None:
    """Test a purchase cannot refer to a missing customer."""
    with pytest.raises(QueryExecutionError, match="FOREIGN KEY"):
        seeded.execute(
            "INSERT INTO purchase (purchaseId, itemName, price, customerId, date) VALUES (11, 'Medkit', 1, 99, '2023-04-01')"
        )


def test_seeding_twice_into_file_database(tmp_path: Path, catalog: Catalog, dataset: Dataset) -> None:
    """Test the schema is recreated when seeding an existing database."""
    config = SqliteConfig(connection_config={"database": str(tmp_path / "guide.db")})
    for _ in range(2):
        with config.provide_session() as session:
            seed_sqlite(session, catalog.loader, dataset)
            assert session.select_value("SELECT COUNT(*) FROM purchase") == 10
