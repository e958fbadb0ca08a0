"""Shared pytest fixtures for StockFlow service and router tests."""

import uuid
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import stockflow.models  # noqa: F401  (configures every mapper relationship)
from stockflow.app import app, limiter
from stockflow.database.base import Base
from stockflow.models.customer import Customer
from stockflow.models.tenant import Tenant
from stockflow.modules.tenancy.schemas import TenantContext

# Use SQLite for lightweight in-process testing of real flush / load behaviour
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# collection_reminders carries a PostgreSQL-only expression index
SQLITE_TABLES = (
    "tenants",
    "customers",
    "products",
    "invoices",
    "invoice_items",
    "quotations",
    "quotation_items",
)


def _assign_identities(added: list) -> None:
    """Give pending objects a primary key, as a real flush would."""
    for obj in added:
        for entity in [obj, *(getattr(obj, "items", None) or [])]:
            if getattr(entity, "id", None) is None:
                entity.id = uuid.uuid4()


@pytest.fixture(autouse=True)
def _unlimited_requests():
    """Every test client shares one address; keep slowapi out of functional tests."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def mock_db():
    session = AsyncMock()
    session.added = []
    session.add = MagicMock(side_effect=session.added.append)
    session.flush = AsyncMock(side_effect=lambda: _assign_identities(session.added))
    session.delete = AsyncMock()
    return session


@pytest.fixture
def tenant() -> TenantContext:
    return TenantContext(tenant_id=uuid.uuid4(), user_id=uuid.uuid4(), role="ADMIN")


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient bound to the app; tests install their own dependency overrides."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Real AsyncSession over in-memory SQLite
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def async_test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    tables = [Base.metadata.tables[name] for name in SQLITE_TABLES]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=tables)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all, tables=tables)
    await engine.dispose()


@pytest_asyncio.fixture
async def async_test_session(async_test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        async_test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def stored_customer(async_test_session, tenant) -> Customer:
    """A tenant row plus one active customer, flushed to the SQLite session."""
    async_test_session.add(Tenant(id=tenant.tenant_id, name="Ferreteria Central SAS"))
    customer = Customer(
        tenant_id=tenant.tenant_id,
        name="Distribuidora La Economia",
        email="compras@laeconomia.co",
        is_active=True,
    )
    async_test_session.add(customer)
    await async_test_session.commit()
    return customer
