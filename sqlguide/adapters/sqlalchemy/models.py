"""SQLAlchemy ORM models for the guide's sample schema.

Attribute names match the column names of the SQL schema, so a column
selected through the ORM carries the same label as the same column selected
in plain SQL.
"""

from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

__all__ = ("Base", "Customer", "Purchase", "schema_columns")


class Base(DeclarativeBase):
    pass


class Customer(Base):
    __tablename__ = "customer"

    customerId: Mapped[int] = mapped_column(Integer, primary_key=True)
    firstName: Mapped[str] = mapped_column(String(50))
    lastName: Mapped[str] = mapped_column(String(50))

    purchases: Mapped[list["Purchase"]] = relationship(back_populates="customer")

    def __repr__(self) -> str:
        return f"Customer(customerId={self.customerId!r}, firstName={self.firstName!r}, lastName={self.lastName!r})"


class Purchase(Base):
    __tablename__ = "purchase"

    purchaseId: Mapped[int] = mapped_column(Integer, primary_key=True)
    itemName: Mapped[str] = mapped_column(String(100))
    price: Mapped[float] = mapped_column(Float)
    customerId: Mapped[int] = mapped_column(ForeignKey("customer.customerId"))
    date: Mapped[str] = mapped_column(String(10))

    customer: Mapped["Customer"] = relationship(back_populates="purchases")

    def __repr__(self) -> str:
        return f"Purchase(purchaseId={self.purchaseId!r}, itemName={self.itemName!r}, price={self.price!r})"


def schema_columns() -> "dict[str, tuple[str, ...]]":
    """Table name to column names, in declaration order."""
    return {table.name: tuple(column.name for column in table.columns) for table in Base.metadata.sorted_tables}
