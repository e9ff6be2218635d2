"""SQLAlchemy engine and session configuration."""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sqlguide.adapters.sqlalchemy.driver import SqlalchemyDriver
from sqlguide.adapters.sqlalchemy.models import Base
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlalchemy.engine import Engine

__all__ = ("SqlalchemyConfig",)

logger = get_logger("adapters.sqlalchemy.config")


def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class SqlalchemyConfig:
    """Engine configuration for the ORM side.

    The default URL is an in-memory SQLite database held on a ``StaticPool``,
    so every session of one config sees the same data.
    """

    driver_type: "type[SqlalchemyDriver]" = SqlalchemyDriver

    def __init__(
        self,
        *,
        url: str = "sqlite://",
        engine_config: "Optional[dict[str, Any]]" = None,
        foreign_keys: bool = True,
    ) -> None:
        self.url = url
        self.engine_config = dict(engine_config or {})
        self.foreign_keys = foreign_keys
        self._engine: Optional[Engine] = None

    def _is_memory(self) -> bool:
        return self.url in {"sqlite://", "sqlite:///:memory:"}

    def get_engine(self) -> "Engine":
        """Create the engine on first use."""
        if self._engine is None:
            engine_config = dict(self.engine_config)
            if self._is_memory():
                engine_config.setdefault("poolclass", StaticPool)
                engine_config.setdefault("connect_args", {"check_same_thread": False})
            self._engine = create_engine(self.url, **engine_config)
            if self.foreign_keys and self.url.startswith("sqlite"):
                event.listen(self._engine, "connect", _enable_foreign_keys)
            logger.debug("Created SQLAlchemy engine for %s", self.url)
        return self._engine

    def create_all(self) -> None:
        """Create every table of the ORM models."""
        Base.metadata.create_all(self.get_engine())

    @contextmanager
    def provide_session(self) -> "Generator[SqlalchemyDriver, None, None]":
        """Provide an ORM driver bound to a new session."""
        session_factory = sessionmaker(bind=self.get_engine(), expire_on_commit=False)
        with session_factory() as session:
            yield self.driver_type(session)

    def close(self) -> None:
        """Dispose of the engine."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
