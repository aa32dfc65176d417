"""
Root test configuration and fixtures.

Provides:
- A file-backed SQLite database (aiosqlite) per test so concurrent reads
  each get their own connection
- A seeded two-tenant store
- The FastAPI app with settings, storage and clock overridden
- Token helpers for every role
"""

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

# Set test environment
os.environ.setdefault("ENV", "test")

from shop_insights.auth.jwt import TokenConfig, TokenService
from shop_insights.config.settings import Settings, get_settings
from shop_insights.constants.permissions import Role
from shop_insights.database.session import build_session_factory, get_session_factory
from shop_insights.db_base import Base
from shop_insights.models import Customer, Order, Product, Tenant, User
from shop_insights.api.dependencies import get_clock

TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# Fixed "now" for date-windowed aggregations: mid-afternoon UTC
NOW = datetime(2026, 10, 17, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """The fixed clock used by the app and services under test."""
    return NOW


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(
        env="test",
        database_url=database_url,
        jwt_secret=TEST_JWT_SECRET,
        jwt_issuer="shop-insights-test",
        max_trend_days=90,
        max_result_limit=50,
    )


@pytest_asyncio.fixture
async def db_engine(database_url):
    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def token_service(settings) -> TokenService:
    return TokenService(TokenConfig.from_settings(settings))


@dataclass
class SeededStore:
    """Ids of the records created by the `store` fixture."""
    tenant_a: int
    tenant_b: int
    owner_a: User
    owner_b: User
    admin: User
    super_admin: User
    inactive_owner: User
    orphan_owner: User


def _customer(id, tenant, first, last, email, created_at):
    return Customer(
        id=id,
        tenant_id=tenant.id,
        first_name=first,
        last_name=last,
        email=email,
        created_at=created_at,
    )


def _order(id, tenant, total, created_at, customer_id=None):
    return Order(
        id=id,
        tenant_id=tenant.id,
        total_price=Decimal(total),
        created_at=created_at,
        customer_id=customer_id,
    )


@pytest_asyncio.fixture
async def store(session_factory) -> SeededStore:
    """
    Two tenants with customers, orders, products and one user per role.

    Tenant A (alpha): 2 customers, 3 orders (149.99 within 30 days, plus a
    40-day-old guest order), 2 products.
    Tenant B (beta): 1 customer, 1 order (300.00), 1 product.
    """
    async with session_factory() as session:
        async with session.begin():
            alpha = Tenant(shop="alpha.myshopify.com", access_token="token-a")
            beta = Tenant(shop="beta.myshopify.com", access_token="token-b")
            session.add_all([alpha, beta])
            await session.flush()

            owner_a = User(email="owner@alpha.myshopify.com", role=Role.STORE_OWNER.value, tenant_id=alpha.id)
            owner_b = User(email="owner@beta.myshopify.com", role=Role.STORE_OWNER.value, tenant_id=beta.id)
            admin = User(email="admin@example.com", role=Role.ADMIN.value)
            super_admin = User(email="root@example.com", role=Role.SUPER_ADMIN.value)
            inactive_owner = User(
                email="gone@alpha.myshopify.com",
                role=Role.STORE_OWNER.value,
                tenant_id=alpha.id,
                is_active=False,
            )
            orphan_owner = User(email="orphan@example.com", role=Role.STORE_OWNER.value)
            session.add_all([owner_a, owner_b, admin, super_admin, inactive_owner, orphan_owner])

            session.add_all([
                _customer("a1", alpha, "Ada", "Lovelace", "ada@example.com", NOW - timedelta(days=90)),
                _customer("a2", alpha, None, "  ", "anon@example.com", NOW - timedelta(days=80)),
                _customer("b1", beta, "Grace", "Hopper", "grace@example.com", NOW - timedelta(days=70)),
            ])
            await session.flush()

            session.add_all([
                _order("oa1", alpha, "100.00", NOW - timedelta(days=1), "a1"),
                _order("oa2", alpha, "49.99", NOW - timedelta(days=3), "a2"),
                _order("oa3", alpha, "20.00", NOW - timedelta(days=40)),
                _order("ob1", beta, "300.00", NOW - timedelta(days=2), "b1"),
            ])
            session.add_all([
                Product(id="pa1", tenant_id=alpha.id, title="Analytics Pro", vendor="Alpha", price=Decimal("299.99")),
                Product(id="pa2", tenant_id=alpha.id, title="Insights Lite", vendor="Alpha", price=Decimal("19.99")),
                Product(id="pb1", tenant_id=beta.id, title="Enterprise Suite", vendor="Beta", price=Decimal("599.99")),
            ])

    return SeededStore(
        tenant_a=alpha.id,
        tenant_b=beta.id,
        owner_a=owner_a,
        owner_b=owner_b,
        admin=admin,
        super_admin=super_admin,
        inactive_owner=inactive_owner,
        orphan_owner=orphan_owner,
    )


@pytest.fixture
def app(settings, session_factory):
    """FastAPI app wired to the test database, settings and fixed clock."""
    from main import create_app

    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    application.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def auth_headers(token_service) -> Callable[[User], dict]:
    """Build an Authorization header for a user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {token_service.issue(user)}"}

    return _headers
