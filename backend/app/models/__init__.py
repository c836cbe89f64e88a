"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - ProductType is the aggregate root of rules; Order of items and customizations

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.product_type import ProductType  # noqa: F401
from app.models.product import Product  # noqa: F401
from app.models.additional import Additional  # noqa: F401
from app.models.order import Order  # noqa: F401
from app.models.order_item import OrderItem  # noqa: F401
from app.models.product_rule import ProductRule  # noqa: F401
from app.models.item_constraint import ItemConstraint  # noqa: F401
from app.models.order_item_customization import OrderItemCustomization  # noqa: F401
from app.models.temp_file import TempFile  # noqa: F401
