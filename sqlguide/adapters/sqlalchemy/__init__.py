"""SQLAlchemy ORM adapter for the query-builder side of the guide."""

from sqlguide.adapters.sqlalchemy.config import SqlalchemyConfig
from sqlguide.adapters.sqlalchemy.driver import SqlalchemyDriver
from sqlguide.adapters.sqlalchemy.models import Base, Customer, Purchase, schema_columns

__all__ = ("Base", "Customer", "Purchase", "SqlalchemyConfig", "SqlalchemyDriver", "schema_columns")
