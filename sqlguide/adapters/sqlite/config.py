"""SQLite database configuration."""

import sqlite3
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional, TypedDict, cast

from typing_extensions import NotRequired

from sqlguide.adapters.sqlite.driver import SqliteDriver
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

logger = get_logger("adapters.sqlite.config")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


__all__ = ("SqliteConfig", "SqliteConnectionParams")


class SqliteConfig:
    """SQLite configuration.

    ``:memory:`` (or no database at all) is replaced with a private in-memory
    URI, so every connection opened by a config starts from an empty database.
    """

    driver_type: "type[SqliteDriver]" = SqliteDriver

    def __init__(
        self,
        *,
        connection_config: "Optional[SqliteConnectionParams | dict[str, Any]]" = None,
        foreign_keys: bool = True,
    ) -> None:
        """Initialize SQLite configuration.

        Args:
            connection_config: Keyword arguments for :func:`sqlite3.connect`.
            foreign_keys: Enable ``FOREIGN KEY`` enforcement on every connection.
        """
        connection_config = dict(connection_config or {})
        if "database" not in connection_config or connection_config["database"] == ":memory:":
            connection_config["database"] = f"file:memory_{uuid.uuid4().hex}?mode=memory&cache=private"
            connection_config["uri"] = True
        else:
            database_path = str(connection_config["database"])
            if database_path.startswith("file:") and not connection_config.get("uri"):
                logger.debug("Database URI detected (%s) but uri=True not set. Enabling URI mode.", database_path)
                connection_config["uri"] = True
        self.connection_config = cast("dict[str, Any]", connection_config)
        self.foreign_keys = foreign_keys

    @property
    def database(self) -> str:
        return str(self.connection_config["database"])

    def create_connection(self) -> "sqlite3.Connection":
        """Open a new SQLite connection.

        Returns:
            The connection, with foreign keys enforced when configured.
        """
        connection = sqlite3.connect(**{k: v for k, v in self.connection_config.items() if v is not None})
        if self.foreign_keys:
            connection.execute("PRAGMA foreign_keys = ON")
        return connection

    @contextmanager
    def provide_connection(self) -> "Generator[sqlite3.Connection, None, None]":
        """Provide a SQLite connection that is closed on exit."""
        connection = self.create_connection()
        try:
            yield connection
        finally:
            connection.close()

    @contextmanager
    def provide_session(self) -> "Generator[SqliteDriver, None, None]":
        """Provide a SQLite driver session.

        Yields:
            SqliteDriver: A driver bound to a fresh connection.
        """
        with self.provide_connection() as connection:
            yield self.driver_type(connection=connection)
