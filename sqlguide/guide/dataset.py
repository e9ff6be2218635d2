"""The fixed sample dataset: five customers and ten purchases.

Rows are decoded from the JSON fixtures into frozen msgspec structs and never
change afterwards. :func:`load_dataset` checks the dataset invariants before
anything is seeded from it.
"""

import datetime
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Annotated, Any

import msgspec

from sqlguide.adapters.sqlalchemy.models import Customer, Purchase
from sqlguide.exceptions import DatasetIntegrityError
from sqlguide.utils.fixtures import open_fixture
from sqlguide.utils.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from sqlguide.adapters.sqlalchemy.config import SqlalchemyConfig
    from sqlguide.adapters.sqlite.driver import SqliteDriver
    from sqlguide.loader import SQLFileLoader

__all__ = (
    "CUSTOMER_COLUMNS",
    "PURCHASE_COLUMNS",
    "CustomerRow",
    "Dataset",
    "PurchaseRow",
    "load_dataset",
    "seed_orm",
    "seed_sqlite",
)

logger = get_logger("guide.dataset")

PositiveInt = Annotated[int, msgspec.Meta(gt=0)]

CUSTOMER_COLUMNS = ("customerId", "firstName", "lastName")
PURCHASE_COLUMNS = ("purchaseId", "itemName", "price", "customerId", "date")


class CustomerRow(msgspec.Struct, frozen=True, rename="camel"):
    customer_id: PositiveInt
    first_name: str
    last_name: str

    def as_tuple(self) -> "tuple[Any, ...]":
        return (self.customer_id, self.first_name, self.last_name)


class PurchaseRow(msgspec.Struct, frozen=True, rename="camel"):
    purchase_id: PositiveInt
    item_name: str
    price: Decimal
    customer_id: PositiveInt
    date: datetime.date

    def as_tuple(self) -> "tuple[Any, ...]":
        return (self.purchase_id, self.item_name, self.price, self.customer_id, self.date)


@dataclass(frozen=True)
class Dataset:
    """Customers and purchases, in fixture order."""

    customers: "tuple[CustomerRow, ...]"
    purchases: "tuple[PurchaseRow, ...]"

    def check_integrity(self) -> None:
        """Check the dataset invariants.

        Raises:
            DatasetIntegrityError: If an id is duplicated, a price is negative or has
                more than two decimal places, or a purchase refers to a missing customer.
        """
        problems: list[str] = []
        for label, ids in (
            ("customerId", [row.customer_id for row in self.customers]),
            ("purchaseId", [row.purchase_id for row in self.purchases]),
        ):
            duplicates = sorted(value for value, count in Counter(ids).items() if count > 1)
            if duplicates:
                problems.append(f"duplicate {label} values: {duplicates}")

        customer_ids = {row.customer_id for row in self.customers}
        for purchase in self.purchases:
            if purchase.customer_id not in customer_ids:
                problems.append(
                    f"purchase {purchase.purchase_id} refers to missing customer {purchase.customer_id}"
                )
            if purchase.price < 0:
                problems.append(f"purchase {purchase.purchase_id} has a negative price")
            exponent = purchase.price.as_tuple().exponent
            if isinstance(exponent, int) and exponent < -2:
                problems.append(f"purchase {purchase.purchase_id} price {purchase.price} has more than two places")

        if problems:
            raise DatasetIntegrityError("; ".join(problems))

    def customer_records(self) -> "list[tuple[Any, ...]]":
        return [row.as_tuple() for row in self.customers]

    def purchase_records(self) -> "list[tuple[Any, ...]]":
        return [row.as_tuple() for row in self.purchases]

    def tables(self) -> "dict[str, tuple[tuple[str, ...], list[tuple[Any, ...]]]]":
        """Table name to ``(columns, rows)``, in schema order."""
        return {
            "customer": (CUSTOMER_COLUMNS, self.customer_records()),
            "purchase": (PURCHASE_COLUMNS, self.purchase_records()),
        }


def load_dataset(fixtures_path: "Path") -> Dataset:
    """Load and check the dataset from the ``customer`` and ``purchase`` JSON fixtures.

    Raises:
        DatasetIntegrityError: If a fixture is malformed or the dataset breaks an invariant.

    Returns:
        The dataset.
    """
    try:
        customers = open_fixture(fixtures_path, "customer", type=list[CustomerRow])
        purchases = open_fixture(fixtures_path, "purchase", type=list[PurchaseRow])
    except msgspec.ValidationError as e:
        msg = f"Malformed dataset fixture in {fixtures_path}: {e}"
        raise DatasetIntegrityError(msg) from e
    except msgspec.DecodeError as e:
        msg = f"Invalid JSON in dataset fixture in {fixtures_path}: {e}"
        raise DatasetIntegrityError(msg) from e
    dataset = Dataset(customers=tuple(customers), purchases=tuple(purchases))
    dataset.check_integrity()
    logger.debug("Loaded %d customers and %d purchases", len(dataset.customers), len(dataset.purchases))
    return dataset


def seed_sqlite(driver: "SqliteDriver", loader: "SQLFileLoader", dataset: Dataset) -> None:
    """Create the schema with the DDL from ``schema.sql`` and insert the dataset."""
    driver.execute(loader.get_query_text("drop_purchase"))
    driver.execute(loader.get_query_text("drop_customer"))
    driver.execute(loader.get_query_text("create_customer"))
    driver.execute(loader.get_query_text("create_purchase"))
    driver.execute_many(loader.get_query_text("insert_customer"), dataset.customer_records())
    driver.execute_many(loader.get_query_text("insert_purchase"), dataset.purchase_records())
    driver.commit()


def seed_orm(config: "SqlalchemyConfig", dataset: Dataset) -> None:
    """Create the schema from the ORM models and insert the dataset as ORM entities."""
    config.create_all()
    with config.provide_session() as driver:
        driver.add_all([
            Customer(customerId=row.customer_id, firstName=row.first_name, lastName=row.last_name)
            for row in dataset.customers
        ])
        driver.add_all([
            Purchase(
                purchaseId=row.purchase_id,
                itemName=row.item_name,
                price=float(row.price),
                customerId=row.customer_id,
                date=row.date.isoformat(),
            )
            for row in dataset.purchases
        ])
