"""Unit tests for the logging helpers."""

import json
import logging
from pathlib import Path

import pytest

from sqlguide.exceptions import ImproperConfigurationError
from sqlguide.utils.logging import (
    LessonContext,
    LessonContextFilter,
    StructuredFormatter,
    configure_logging,
    current_lesson,
    get_logger,
    lesson_context,
    lesson_phase,
    log_with_context,
)


def _record(message: str = "Validated 15 lesson(s)") -> logging.LogRecord:
    return logging.LogRecord(
        name="sqlguide.guide.validator",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )


def test_get_logger_namespaces_names() -> None:
    """Test loggers live under the sqlguide namespace."""
    assert get_logger().name == "sqlguide"
    assert get_logger("loader").name == "sqlguide.loader"
    assert get_logger("sqlguide.cli").name == "sqlguide.cli"


def test_lesson_context_and_phase() -> None:
    """Test the lesson and its phase are bound for the duration of a block."""
    assert current_lesson() is None
    with lesson_phase("sql"):
        assert current_lesson() is None
    with lesson_context("count_customers"):
        assert current_lesson() == LessonContext("count_customers")
        with lesson_phase("builder"):
            assert current_lesson() == LessonContext("count_customers", "builder")
            assert current_lesson().tag == "count_customers:builder"  # type: ignore[union-attr]
        assert current_lesson() == LessonContext("count_customers")
    assert current_lesson() is None


def test_lesson_filter() -> None:
    """Test the filter copies the bound lesson onto records."""
    record = _record()
    with lesson_context("big_spenders"), lesson_phase("compare"):
        assert LessonContextFilter().filter(record)
    assert record.lesson == "big_spenders"  # type: ignore[attr-defined]
    assert record.phase == "compare"  # type: ignore[attr-defined]
    assert record.lesson_tag == " [big_spenders:compare]"  # type: ignore[attr-defined]

    outside = _record()
    LessonContextFilter().filter(outside)
    assert outside.lesson is None  # type: ignore[attr-defined]
    assert outside.lesson_tag == ""  # type: ignore[attr-defined]


def test_structured_formatter() -> None:
    """Test records are formatted as JSON with the lesson and extra fields."""
    record = _record()
    record.extra_fields = {"lessons": 15, "failures": 0}
    with lesson_context("count_customers"), lesson_phase("sql"):
        LessonContextFilter().filter(record)

    entry = json.loads(StructuredFormatter().format(record))

    assert entry["level"] == "INFO"
    assert entry["logger"] == "sqlguide.guide.validator"
    assert entry["message"] == "Validated 15 lesson(s)"
    assert entry["lesson"] == "count_customers"
    assert entry["phase"] == "sql"
    assert entry["lessons"] == 15


def test_structured_formatter_without_lesson() -> None:
    """Test records logged outside a lesson have no lesson keys."""
    entry = json.loads(StructuredFormatter().format(_record()))
    assert "lesson" not in entry
    assert "phase" not in entry


def test_configure_logging_structured(capsys: pytest.CaptureFixture[str]) -> None:
    """Test structured logs are written to stderr as JSON."""
    configure_logging(level="INFO", format_style="structured")
    with lesson_context("count_customers"):
        log_with_context(get_logger("tests"), logging.INFO, "hello", rows=1)

    captured = capsys.readouterr()
    assert captured.out == ""
    entry = json.loads(captured.err.strip().splitlines()[-1])
    assert entry["message"] == "hello"
    assert entry["lesson"] == "count_customers"
    assert entry["rows"] == 1


def test_configure_logging_simple_tags_lessons(capsys: pytest.CaptureFixture[str]) -> None:
    """Test simple logs tag records with the lesson and phase."""
    configure_logging(level="INFO")
    with lesson_context("big_spenders"), lesson_phase("builder"):
        get_logger("tests").info("inside")
    get_logger("tests").info("outside")

    lines = capsys.readouterr().err.strip().splitlines()
    assert lines[-2].endswith("sqlguide.tests [big_spenders:builder] inside")
    assert lines[-1].endswith("sqlguide.tests outside")


def test_configure_logging_level(capsys: pytest.CaptureFixture[str]) -> None:
    """Test records below the configured level are dropped."""
    configure_logging(level="WARNING")
    get_logger("tests").info("quiet")
    get_logger("tests").warning("loud")

    err = capsys.readouterr().err
    assert "quiet" not in err
    assert "loud" in err


def test_configure_logging_to_file(tmp_path: Path) -> None:
    """Test logs can also be written to a file."""
    log_file = tmp_path / "guide.log"
    configure_logging(level="INFO", log_to_file=str(log_file))
    get_logger("tests").info("to file")
    for handler in logging.getLogger("sqlguide").handlers:
        handler.flush()

    assert json.loads(log_file.read_text().strip().splitlines()[-1])["message"] == "to file"


@pytest.mark.parametrize("kwargs", [{"level": "LOUD"}, {"format_style": "xml"}])
def test_configure_logging_rejects_unknown_values(kwargs: dict) -> None:
    """Test unknown levels and formats are rejected."""
    with pytest.raises(ImproperConfigurationError):
        configure_logging(**kwargs)
