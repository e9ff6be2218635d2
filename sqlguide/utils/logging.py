"""Logging setup for sqlguide.

Every logger lives under the ``sqlguide`` namespace. While a lesson is being
validated its slug and the current phase (``schema``, ``sql``, ``builder`` or
``compare``) are bound to the context, and every record written by a
configured handler carries them, as ``lesson`` and ``phase`` keys in
structured output and as a ``[slug:phase]`` tag in simple output.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from sqlguide._serialization import encode_json
from sqlguide.exceptions import ImproperConfigurationError

if TYPE_CHECKING:
    from collections.abc import Generator
    from logging import LogRecord

__all__ = (
    "LOG_LEVELS",
    "LessonContext",
    "LessonContextFilter",
    "StructuredFormatter",
    "configure_logging",
    "current_lesson",
    "get_logger",
    "lesson_context",
    "lesson_phase",
    "log_with_context",
)

ROOT_LOGGER_NAME = "sqlguide"
SIMPLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s%(lesson_tag)s %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LessonContext:
    """The lesson a record was logged for."""

    slug: str
    phase: str | None = None

    @property
    def tag(self) -> str:
        return f"{self.slug}:{self.phase}" if self.phase else self.slug


_lesson_var: ContextVar[LessonContext | None] = ContextVar("sqlguide_lesson", default=None)


def current_lesson() -> LessonContext | None:
    """The lesson bound to the current context, if any."""
    return _lesson_var.get()


@contextmanager
def lesson_context(slug: str) -> Generator[LessonContext, None, None]:
    """Bind a lesson to every record logged inside the block.

    Args:
        slug: Slug of the lesson.

    Yields:
        The bound context.
    """
    context = LessonContext(slug)
    token = _lesson_var.set(context)
    try:
        yield context
    finally:
        _lesson_var.reset(token)


@contextmanager
def lesson_phase(phase: str) -> Generator[None, None, None]:
    """Mark the phase of the bound lesson. Outside a lesson this does nothing."""
    context = _lesson_var.get()
    if context is None:
        yield
        return
    token = _lesson_var.set(replace(context, phase=phase))
    try:
        yield
    finally:
        _lesson_var.reset(token)


class LessonContextFilter(logging.Filter):
    """Copies the bound lesson onto records as ``lesson``, ``phase`` and ``lesson_tag``."""

    def filter(self, record: LogRecord) -> bool:
        context = _lesson_var.get()
        record.lesson = context.slug if context else None  # type: ignore[attr-defined]
        record.phase = context.phase if context else None  # type: ignore[attr-defined]
        record.lesson_tag = f" [{context.tag}]" if context else ""  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if lesson := getattr(record, "lesson", None):
            entry["lesson"] = lesson
            if phase := getattr(record, "phase", None):
                entry["phase"] = phase
        entry.update(getattr(record, "extra_fields", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``sqlguide`` namespace.

    Args:
        name: Dotted name relative to the package, or a full ``sqlguide.`` name.

    Returns:
        The logger; the package root logger when no name is given.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def _handler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.addFilter(LessonContextFilter())
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: str = "INFO", format_style: str = "simple", log_to_file: str | None = None) -> None:
    """Configure the handlers of the ``sqlguide`` logger.

    Console output goes to stderr so a rendered guide can be piped from
    stdout. A log file, when given, is always written as structured JSON.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format_style: ``"simple"`` for text or ``"structured"`` for JSON.
        log_to_file: Optional path of a log file.

    Raises:
        ImproperConfigurationError: If the level or format style is unknown.
    """
    if level.upper() not in LOG_LEVELS:
        msg = f"Unknown log level {level!r}. Expected one of: {', '.join(LOG_LEVELS)}"
        raise ImproperConfigurationError(msg)
    if format_style not in {"structured", "simple"}:
        msg = f"Unknown log format {format_style!r}. Expected 'structured' or 'simple'"
        raise ImproperConfigurationError(msg)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.upper())
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()

    console_formatter = StructuredFormatter() if format_style == "structured" else logging.Formatter(SIMPLE_FORMAT)
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stderr), console_formatter))
    if log_to_file:
        root_logger.addHandler(_handler(logging.FileHandler(log_to_file, encoding="utf-8"), StructuredFormatter()))
    root_logger.propagate = False

    log_with_context(root_logger, logging.DEBUG, "Logging configured", level=level.upper(), format=format_style)


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log a message with extra fields, which structured output adds as keys."""
    logger.log(level, message, extra={"extra_fields": extra_fields})
