"""Query result container shared by the SQL and query-builder adapters.

Both sides of a lesson produce a :class:`QueryResult`. Values are kept as the
driver returned them; :meth:`QueryResult.normalized_rows` produces the
comparable form, with every float and ``Decimal`` quantized to a fixed number
of places so that floating-point sums compare exactly.
"""

from collections import Counter
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

__all__ = ("QueryResult", "normalize_value")


def normalize_value(value: Any, places: int = 2) -> Any:
    """Convert a result value into its comparable form.

    Args:
        value: A value returned by a driver.
        places: Decimal places floats and decimals are quantized to.

    Returns:
        ``Decimal`` for floats and decimals, the value unchanged otherwise.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (float, Decimal)):
        return Decimal(str(value)).quantize(Decimal(1).scaleb(-places))
    return value


class QueryResult:
    """Rows returned by one executed statement.

    Args:
        columns: Column labels in select-list order.
        rows: Row tuples.
        statement: The SQL text that produced the rows.
        execution_time: Seconds spent executing, when measured.
    """

    __slots__ = ("columns", "execution_time", "rows", "statement")

    def __init__(
        self,
        columns: "Sequence[str]",
        rows: "Sequence[Sequence[Any]]",
        statement: str = "",
        execution_time: Optional[float] = None,
    ) -> None:
        self.columns = tuple(columns)
        self.rows = [tuple(row) for row in rows]
        self.statement = statement
        self.execution_time = execution_time

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> "Iterator[tuple[Any, ...]]":
        return iter(self.rows)

    def __repr__(self) -> str:
        return f"QueryResult(columns={self.columns!r}, rows={len(self.rows)})"

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    def scalar(self) -> Any:
        """Get the first column of the first row.

        Raises:
            ValueError: If the result is empty.
        """
        if not self.rows:
            msg = "Result has no rows"
            raise ValueError(msg)
        return self.rows[0][0]

    def column_keys(self) -> "tuple[str, ...]":
        """Column labels folded to lower case, the way SQLite compares identifiers."""
        return tuple(column.lower() for column in self.columns)

    def normalized_rows(self, places: int = 2) -> "list[tuple[Any, ...]]":
        """Rows with every value passed through :func:`normalize_value`."""
        return [tuple(normalize_value(value, places) for value in row) for row in self.rows]

    def row_counter(self, places: int = 2) -> "Counter[tuple[Any, ...]]":
        """Normalized rows as a multiset, for order-insensitive comparison."""
        return Counter(self.normalized_rows(places))
