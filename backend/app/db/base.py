"""SQLAlchemy Declarative Base — metadata shared by every storefront table.

Invariants:
    - Every model inherits from Base; Base.metadata is what alembic diffs against
    - Constraint and index names are deterministic (NAMING_CONVENTION), so a
      migration can drop what an earlier one created by name

Design Decisions:
    - Separate file for Base: models import it without importing each other
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
