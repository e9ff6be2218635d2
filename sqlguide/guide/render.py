"""Markdown rendering of the guide.

The document is the schema section followed by one section per lesson, each
showing the SQL, the SQLAlchemy builder and the result table.
"""

import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlguide.core.analysis import format_sql
from sqlguide.core.result import normalize_value

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlguide.guide.catalog import Catalog, Lesson
    from sqlguide.guide.dataset import Dataset

__all__ = ("format_cell", "render_lesson", "render_markdown", "render_table")

INTRO = (
    "Each lesson below shows a SQL query, the equivalent SQLAlchemy statement and the "
    "rows both return when run against the sample data. Every lesson is executed in both "
    "forms when this guide is built, and the build fails if the results disagree."
)


def format_cell(value: Any, places: int = 2) -> str:
    """Format one value for a markdown table cell."""
    if value is None:
        return "NULL"
    if isinstance(value, (float, Decimal)):
        return f"{normalize_value(value, places)}"
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value).replace("|", "\\|").replace("\n", " ")


def render_table(columns: "Sequence[str]", rows: "Sequence[Sequence[Any]]", places: int = 2) -> str:
    """Render columns and rows as a markdown table."""
    lines = [
        "| " + " | ".join(format_cell(column) for column in columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    lines.extend("| " + " | ".join(format_cell(value, places) for value in row) + " |" for row in rows)
    return "\n".join(lines)


def render_lesson(lesson: "Lesson", dialect: Optional[str] = None, places: int = 2) -> str:
    """Render one lesson section.

    Args:
        lesson: The lesson.
        dialect: Transpile the SQL into this dialect. ``None`` shows the SQL as written.
        places: Decimal places for numeric cells.

    Returns:
        The markdown section.
    """
    sql = lesson.sql if dialect is None or dialect == lesson.dialect else format_sql(lesson.sql, lesson.dialect, dialect)
    parts = [f"### {lesson.number}. {lesson.title}", ""]
    if lesson.description:
        parts.extend([lesson.description, ""])
    parts.extend([
        f"**SQL** ({dialect or lesson.dialect})",
        "",
        "```sql",
        sql,
        "```",
        "",
        "**SQLAlchemy**",
        "",
        "```python",
        lesson.builder_source,
        "```",
        "",
        "**Result**",
        "",
        render_table(lesson.expected.columns, lesson.expected.rows, places),
    ])
    return "\n".join(parts)


def render_markdown(
    catalog: "Catalog",
    dataset: "Dataset",
    *,
    title: str = "SQL to SQLAlchemy Query Guide",
    dialect: Optional[str] = None,
    places: int = 2,
    lessons: "Optional[Sequence[Lesson]]" = None,
) -> str:
    """Render the whole guide.

    Args:
        catalog: The lesson catalog.
        dataset: The sample dataset shown in the schema section.
        title: Document title.
        dialect: Transpile lesson SQL into this dialect.
        places: Decimal places for numeric cells.
        lessons: Lessons to include. Defaults to the whole catalog.

    Returns:
        The markdown document, ending with a newline.
    """
    sections = [f"# {title}", "", INTRO, "", "## Schema", ""]
    for table, (columns, rows) in dataset.tables().items():
        sections.extend([f"### {table}", "", render_table(columns, rows, places), ""])
    sections.extend(["## Lessons", ""])
    for lesson in lessons if lessons is not None else catalog.lessons:
        sections.extend([render_lesson(lesson, dialect, places), ""])
    return "\n".join(sections).rstrip("\n") + "\n"
