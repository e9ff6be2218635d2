"""Guide configuration.

Settings may be given explicitly or read from ``SQLGUIDE_*`` environment
variables with :meth:`GuideConfig.from_env`.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from sqlguide.exceptions import ImproperConfigurationError
from sqlguide.loader import SUPPORTED_DIALECTS, normalize_dialect
from sqlguide.utils.logging import LOG_LEVELS
from sqlguide.utils.module_loader import module_to_os_path

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ("ENV_PREFIX", "GuideConfig")

ENV_PREFIX = "SQLGUIDE_"


@dataclass(frozen=True)
class GuideConfig:
    """Settings shared by the validator, the renderer and the CLI."""

    database: str = ":memory:"
    """SQLite database used for the SQL side. ``:memory:`` gives a private in-memory database."""

    dialect: str = "sqlite"
    """Dialect the lesson SQL is written in."""

    render_dialect: Optional[str] = None
    """Dialect to transpile lesson SQL into when rendering. ``None`` keeps the source text."""

    decimal_places: int = 2
    """Places numeric results are quantized to before comparison and display."""

    title: str = "SQL to SQLAlchemy Query Guide"

    queries_path: Path = field(default_factory=lambda: module_to_os_path("sqlguide.guide") / "queries")
    fixtures_path: Path = field(default_factory=lambda: module_to_os_path("sqlguide.guide") / "fixtures")

    log_level: str = "INFO"
    log_format: str = "simple"

    def __post_init__(self) -> None:
        object.__setattr__(self, "dialect", normalize_dialect(self.dialect))
        if self.render_dialect is not None:
            object.__setattr__(self, "render_dialect", normalize_dialect(self.render_dialect))
        for dialect in (self.dialect, self.render_dialect):
            if dialect is not None and dialect not in SUPPORTED_DIALECTS:
                msg = f"Unsupported SQL dialect {dialect!r}"
                raise ImproperConfigurationError(msg)
        if self.decimal_places < 0:
            msg = f"decimal_places must be >= 0, got {self.decimal_places}"
            raise ImproperConfigurationError(msg)
        if self.log_level.upper() not in LOG_LEVELS:
            msg = f"Unknown log level {self.log_level!r}"
            raise ImproperConfigurationError(msg)
        if self.log_format not in {"simple", "structured"}:
            msg = f"Unknown log format {self.log_format!r}"
            raise ImproperConfigurationError(msg)
        object.__setattr__(self, "queries_path", Path(self.queries_path))
        object.__setattr__(self, "fixtures_path", Path(self.fixtures_path))

    @classmethod
    def from_env(cls, environ: "Optional[Mapping[str, str]]" = None, **overrides: Any) -> "GuideConfig":
        """Build a configuration from ``SQLGUIDE_*`` environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            **overrides: Values that win over the environment. ``None`` values are ignored.

        Raises:
            ImproperConfigurationError: If a variable cannot be converted.

        Returns:
            The configuration.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in ("database", "dialect", "render_dialect", "title", "log_level", "log_format"):
            if (raw := environ.get(f"{ENV_PREFIX}{name.upper()}")) is not None:
                values[name] = raw
        for name in ("queries_path", "fixtures_path"):
            if (raw := environ.get(f"{ENV_PREFIX}{name.upper()}")) is not None:
                values[name] = Path(raw)
        if (raw := environ.get(f"{ENV_PREFIX}DECIMAL_PLACES")) is not None:
            try:
                values["decimal_places"] = int(raw)
            except ValueError as e:
                msg = f"{ENV_PREFIX}DECIMAL_PLACES must be an integer, got {raw!r}"
                raise ImproperConfigurationError(msg) from e
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "GuideConfig":
        """Return a copy with the non-``None`` overrides applied."""
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})
