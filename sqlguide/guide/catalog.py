"""The lesson catalog.

A lesson pairs one SQL statement (loaded by name from ``queries/lessons.sql``)
with one SQLAlchemy builder from :mod:`sqlguide.guide.builders` and the table
the guide documents as their result.
"""

import inspect
import textwrap
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlguide.core.analysis import has_order_by
from sqlguide.exceptions import LessonError
from sqlguide.guide import builders
from sqlguide.loader import SQLFileLoader
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

    from sqlalchemy import Select

__all__ = ("LESSONS", "Catalog", "ExpectedTable", "Lesson", "LessonDefinition")

logger = get_logger("guide.catalog")


@dataclass(frozen=True)
class ExpectedTable:
    """A documented result table."""

    columns: "tuple[str, ...]"
    rows: "tuple[tuple[Any, ...], ...]"

    def __post_init__(self) -> None:
        for row in self.rows:
            if len(row) != len(self.columns):
                msg = f"Row {row!r} has {len(row)} values for {len(self.columns)} columns"
                raise ValueError(msg)


@dataclass(frozen=True)
class LessonDefinition:
    """What a lesson is made of before its SQL is loaded."""

    slug: str
    title: str
    builder: "Callable[[], Select]"
    expected: ExpectedTable
    description: str = ""


@dataclass(frozen=True)
class Lesson:
    """A lesson with its SQL text resolved."""

    number: int
    slug: str
    title: str
    sql: str
    builder: "Callable[[], Select]"
    expected: ExpectedTable
    description: str = ""
    dialect: str = "sqlite"
    ordered: bool = field(default=False)

    @property
    def builder_source(self) -> str:
        """Source code of the builder function, as shown in the guide."""
        return textwrap.dedent(inspect.getsource(self.builder)).strip()


def _d(value: str) -> Decimal:
    return Decimal(value)


CUSTOMERS = (
    (1, "Peter", "Tran"),
    (2, "Samus", "Aran"),
    (3, "Ash", "Ketchum"),
    (4, "Gordon", "Freeman"),
    (5, "Lara", "Croft"),
)

LESSONS: "tuple[LessonDefinition, ...]" = (
    LessonDefinition(
        slug="select_all_customers",
        title="Select every row of a table",
        description="`SELECT *` maps to selecting the mapped class itself.",
        builder=builders.select_all_customers,
        expected=ExpectedTable(("customerId", "firstName", "lastName"), CUSTOMERS),
    ),
    LessonDefinition(
        slug="select_customer_names",
        title="Select specific columns",
        description="Pass the mapped attributes you want to `select()`.",
        builder=builders.select_customer_names,
        expected=ExpectedTable(("firstName", "lastName"), tuple(row[1:] for row in CUSTOMERS)),
    ),
    LessonDefinition(
        slug="purchases_over_fifty",
        title="Filter rows by price",
        description="Comparison operators on mapped attributes build the `WHERE` clause.",
        builder=builders.purchases_over_fifty,
        expected=ExpectedTable(
            ("purchaseId", "itemName", "price", "customerId", "date"),
            (
                (3, "USP45", _d("300.00"), 4, "2023-01-12"),
                (4, "Missles", _d("99.99"), 2, "2023-02-03"),
                (5, "Varia Suit", _d("1049.99"), 2, "2023-02-14"),
                (6, "Master Ball", _d("999.99"), 3, "2023-02-20"),
            ),
        ),
    ),
    LessonDefinition(
        slug="purchases_by_price",
        title="Sort rows",
        description="`.desc()` sorts descending; later arguments to `order_by()` break ties.",
        builder=builders.purchases_by_price,
        expected=ExpectedTable(
            ("itemName", "price"),
            (
                ("Varia Suit", _d("1049.99")),
                ("Master Ball", _d("999.99")),
                ("USP45", _d("300.00")),
                ("Missles", _d("99.99")),
                ("Crowbar", _d("25.00")),
                ("Burger", _d("5.00")),
                ("Chocolate", _d("5.00")),
                ("Potion", _d("3.00")),
                ("Poke Ball", _d("2.00")),
                ("French Fries", _d("1.99")),
            ),
        ),
    ),
    LessonDefinition(
        slug="purchases_in_date_range",
        title="Filter rows by a date range",
        description="`BETWEEN` includes both bounds. Dates are stored as ISO-8601 text, so they sort as dates.",
        builder=builders.purchases_in_date_range,
        expected=ExpectedTable(
            ("purchaseId", "itemName", "date"),
            (
                (4, "Missles", "2023-02-03"),
                (5, "Varia Suit", "2023-02-14"),
                (6, "Master Ball", "2023-02-20"),
            ),
        ),
    ),
    LessonDefinition(
        slug="count_customers",
        title="Count rows",
        description="`func.count()` with `select_from()` counts the rows of a table.",
        builder=builders.count_customers,
        expected=ExpectedTable(("total",), ((5,),)),
    ),
    LessonDefinition(
        slug="count_purchases_for_customer",
        title="Count matching rows",
        builder=builders.count_purchases_for_customer,
        expected=ExpectedTable(("purchases",), ((3,),)),
    ),
    LessonDefinition(
        slug="total_spent_by_customer",
        title="Sum a column",
        description="Peter Tran bought a burger, french fries and chocolate.",
        builder=builders.total_spent_by_customer,
        expected=ExpectedTable(("total",), ((_d("11.99"),),)),
    ),
    LessonDefinition(
        slug="purchases_with_customer_names",
        title="Join two tables",
        description="Joining along a relationship supplies the `ON` clause.",
        builder=builders.purchases_with_customer_names,
        expected=ExpectedTable(
            ("firstName", "lastName", "itemName"),
            (
                ("Gordon", "Freeman", "USP45"),
                ("Samus", "Aran", "Missles"),
                ("Samus", "Aran", "Varia Suit"),
                ("Ash", "Ketchum", "Master Ball"),
            ),
        ),
    ),
    LessonDefinition(
        slug="total_spent_per_customer",
        title="Group and aggregate",
        description="A labeled aggregate can be reused in `order_by()`.",
        builder=builders.total_spent_per_customer,
        expected=ExpectedTable(
            ("firstName", "lastName", "total"),
            (
                ("Samus", "Aran", _d("1149.98")),
                ("Ash", "Ketchum", _d("1004.99")),
                ("Gordon", "Freeman", _d("325.00")),
                ("Peter", "Tran", _d("11.99")),
            ),
        ),
    ),
    LessonDefinition(
        slug="customers_without_purchases",
        title="Find rows with no match using an outer join",
        builder=builders.customers_without_purchases,
        expected=ExpectedTable(("customerId", "firstName", "lastName"), ((5, "Lara", "Croft"),)),
    ),
    LessonDefinition(
        slug="frequent_customers",
        title="Filter groups with HAVING",
        builder=builders.frequent_customers,
        expected=ExpectedTable(("customerId", "purchases"), ((1, 3), (3, 3))),
    ),
    LessonDefinition(
        slug="big_spenders",
        title="Remove duplicate rows",
        builder=builders.big_spenders,
        expected=ExpectedTable(("customerId",), ((2,), (3,), (4,))),
    ),
    LessonDefinition(
        slug="most_expensive_purchases",
        title="Limit the number of rows",
        builder=builders.most_expensive_purchases,
        expected=ExpectedTable(
            ("itemName", "price"),
            (("Varia Suit", _d("1049.99")), ("Master Ball", _d("999.99")), ("USP45", _d("300.00"))),
        ),
    ),
    LessonDefinition(
        slug="items_matching_pattern",
        title="Match text with LIKE",
        description="SQLite's `LIKE` is case-insensitive for ASCII letters.",
        builder=builders.items_matching_pattern,
        expected=ExpectedTable(("itemName",), (("Master Ball",), ("Poke Ball",))),
    ),
)


class Catalog:
    """Ordered lessons with their SQL loaded.

    Args:
        queries_path: Directory holding ``lessons.sql`` and ``schema.sql``.
        definitions: Lesson definitions, in the order they appear in the guide.
        dialect: Dialect the lesson SQL is written in, unless a statement declares its own.
    """

    def __init__(
        self,
        queries_path: "Path",
        definitions: "Sequence[LessonDefinition]" = LESSONS,
        dialect: str = "sqlite",
    ) -> None:
        self.loader = SQLFileLoader()
        self.loader.load_sql(queries_path)
        self.dialect = dialect
        self.lessons = self._resolve(definitions)
        logger.debug("Catalog loaded %d lessons from %s", len(self.lessons), queries_path)

    def _resolve(self, definitions: "Sequence[LessonDefinition]") -> "tuple[Lesson, ...]":
        lessons: list[Lesson] = []
        seen: set[str] = set()
        for number, definition in enumerate(definitions, start=1):
            if definition.slug in seen:
                raise LessonError(definition.slug, "duplicate lesson slug")
            seen.add(definition.slug)
            if not callable(definition.builder):
                raise LessonError(definition.slug, "builder is not callable")
            if not self.loader.has_query(definition.slug):
                raise LessonError(definition.slug, "no SQL statement with this name")
            statement = self.loader.get_sql(definition.slug)
            dialect = statement.dialect or self.dialect
            lessons.append(
                Lesson(
                    number=number,
                    slug=definition.slug,
                    title=definition.title,
                    description=definition.description,
                    sql=statement.sql,
                    builder=definition.builder,
                    expected=definition.expected,
                    dialect=dialect,
                    ordered=has_order_by(statement.sql, dialect),
                )
            )
        return tuple(lessons)

    def __iter__(self) -> "Iterator[Lesson]":
        return iter(self.lessons)

    def __len__(self) -> int:
        return len(self.lessons)

    def get(self, slug: str) -> Lesson:
        """Get a lesson by slug or by its number in the guide.

        Raises:
            LessonError: If no lesson matches.
        """
        for lesson in self.lessons:
            if slug in {lesson.slug, str(lesson.number)}:
                return lesson
        raise LessonError(slug, "no such lesson")

    def select(self, slugs: "Optional[Sequence[str]]" = None) -> "tuple[Lesson, ...]":
        """The lessons named by ``slugs``, or every lesson."""
        if not slugs:
            return self.lessons
        return tuple(self.get(slug) for slug in slugs)
