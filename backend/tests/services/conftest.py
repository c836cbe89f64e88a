"""Service test fixtures — async DB, temp store and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Every test gets its own temp store rooted in tmp_path
    - get_db and get_temp_file_store overridden for route-level injection
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory over StaticPool: every session shares the one connection,
      so rows seeded through test_db are visible to request sessions
    - Seed helpers build the minimal catalog/order rows the routes need
      (no catalog CRUD exists in this service)
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_temp_file_store
from app.core.domain_types import RuleType
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.temp_file_store import TempFileStore
from app.models.additional import Additional
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.product import Product
from app.models.product_rule import ProductRule
from app.models.product_type import ProductType
import app.infrastructure.database as db_module
from app.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def temp_store(tmp_path):
    return TempFileStore(tmp_path / "temp", url_prefix="/temp")


@pytest.fixture
async def client(test_engine, test_session_factory, temp_store):
    """FastAPI test client with DB and temp store dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_temp_file_store] = lambda: temp_store

    # Patch db_manager for code that reads it directly (readiness probe)
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed helpers ───────────────────────────────────────────────

@pytest.fixture
async def catalog(test_db):
    """One product type with a product, one additional, one order with one item."""
    product_type = ProductType(name="Mug")
    test_db.add(product_type)
    await test_db.flush()
    product = Product(name="White mug", type_id=product_type.id)
    other_product = Product(name="Photo frame", type_id=product_type.id)
    additional = Additional(name="Greeting card")
    test_db.add_all([product, other_product, additional])
    await test_db.flush()
    order = Order()
    test_db.add(order)
    await test_db.flush()
    item = OrderItem(order_id=order.id, product_id=product.id, quantity=1)
    test_db.add(item)
    await test_db.commit()
    return {
        "product_type": product_type,
        "product": product,
        "other_product": other_product,
        "additional": additional,
        "order": order,
        "item": item,
    }


@pytest.fixture
def make_rule(test_db):
    """Factory: insert a ProductRule directly and return it."""
    async def _make(product_type_id, title, rule_type=RuleType.PHOTO_UPLOAD, **fields):
        rule = ProductRule(
            product_type_id=product_type_id,
            title=title,
            rule_type=RuleType(rule_type).value,
            conflict_with=[str(r) for r in fields.pop("conflict_with", [])],
            dependencies=[str(r) for r in fields.pop("dependencies", [])],
            **fields,
        )
        test_db.add(rule)
        await test_db.commit()
        await test_db.refresh(rule)
        return rule
    return _make
