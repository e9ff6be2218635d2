"""SQLite adapter for the SQL side of the guide."""

from sqlguide.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from sqlguide.adapters.sqlite.driver import SqliteCursor, SqliteDriver

__all__ = ("SqliteConfig", "SqliteConnectionParams", "SqliteCursor", "SqliteDriver")
