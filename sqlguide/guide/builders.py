"""SQLAlchemy equivalents of the lesson queries.

Each function returns the statement the guide shows next to the SQL of the
lesson with the same name. The source of these functions is rendered verbatim,
so keep them short and self-explanatory.
"""

from sqlalchemy import Select, func, select

from sqlguide.adapters.sqlalchemy.models import Customer, Purchase

__all__ = (
    "big_spenders",
    "count_customers",
    "count_purchases_for_customer",
    "customers_without_purchases",
    "frequent_customers",
    "items_matching_pattern",
    "most_expensive_purchases",
    "purchases_by_price",
    "purchases_in_date_range",
    "purchases_over_fifty",
    "purchases_with_customer_names",
    "select_all_customers",
    "select_customer_names",
    "total_spent_by_customer",
    "total_spent_per_customer",
)


def select_all_customers() -> Select:
    return select(Customer)


def select_customer_names() -> Select:
    return select(Customer.firstName, Customer.lastName)


def purchases_over_fifty() -> Select:
    return select(Purchase).where(Purchase.price > 50)


def purchases_by_price() -> Select:
    return select(Purchase.itemName, Purchase.price).order_by(Purchase.price.desc(), Purchase.itemName)


def purchases_in_date_range() -> Select:
    return select(Purchase.purchaseId, Purchase.itemName, Purchase.date).where(
        Purchase.date.between("2023-02-01", "2023-02-28")
    )


def count_customers() -> Select:
    return select(func.count().label("total")).select_from(Customer)


def count_purchases_for_customer() -> Select:
    return select(func.count().label("purchases")).select_from(Purchase).where(Purchase.customerId == 1)


def total_spent_by_customer() -> Select:
    return select(func.sum(Purchase.price).label("total")).where(Purchase.customerId == 1)


def purchases_with_customer_names() -> Select:
    return (
        select(Customer.firstName, Customer.lastName, Purchase.itemName)
        .select_from(Purchase)
        .join(Purchase.customer)
        .where(Purchase.price > 50)
        .order_by(Purchase.purchaseId)
    )


def total_spent_per_customer() -> Select:
    total = func.sum(Purchase.price).label("total")
    return (
        select(Customer.firstName, Customer.lastName, total)
        .join(Customer.purchases)
        .group_by(Customer.customerId)
        .order_by(total.desc())
    )


def customers_without_purchases() -> Select:
    return (
        select(Customer.customerId, Customer.firstName, Customer.lastName)
        .outerjoin(Customer.purchases)
        .where(Purchase.purchaseId.is_(None))
    )


def frequent_customers() -> Select:
    return (
        select(Purchase.customerId, func.count().label("purchases"))
        .group_by(Purchase.customerId)
        .having(func.count() >= 3)
        .order_by(Purchase.customerId)
    )


def big_spenders() -> Select:
    return select(Purchase.customerId).distinct().where(Purchase.price > 50).order_by(Purchase.customerId)


def most_expensive_purchases() -> Select:
    return select(Purchase.itemName, Purchase.price).order_by(Purchase.price.desc()).limit(3)


def items_matching_pattern() -> Select:
    return select(Purchase.itemName).where(Purchase.itemName.like("%Ball%"))
