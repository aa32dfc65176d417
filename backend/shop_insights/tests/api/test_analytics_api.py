"""
Dashboard API tests.

CRITICAL: These tests verify tenant isolation end to end. A store owner
must never see another tenant's data, whatever tenantId they send.
"""

import pytest
import pytest_asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import text, update
from sqlalchemy.ext.asyncio import create_async_engine

from shop_insights.database.session import build_session_factory, get_session_factory
from shop_insights.models import Order, Tenant, User
from shop_insights.platform.errors import ErrorCode

DATA_ENDPOINTS = [
    "/api/dashboard",
    "/api/revenue-trend",
    "/api/top-customers",
    "/api/recent-orders",
]


@pytest_asyncio.fixture
async def gamma_tenant(session_factory, store, now) -> int:
    """Tenant with a single order of 150 placed two days ago."""
    async with session_factory() as session:
        async with session.begin():
            tenant = Tenant(shop="gamma.myshopify.com", access_token="token-g")
            session.add(tenant)
            await session.flush()
            session.add(
                Order(
                    id="og1",
                    tenant_id=tenant.id,
                    total_price=Decimal("150.00"),
                    created_at=now - timedelta(days=2),
                )
            )
    return tenant.id


# ============================================================================
# TENANT ISOLATION
# ============================================================================

class TestTenantIsolation:

    @pytest.mark.asyncio
    async def test_store_owner_tenant_param_is_ignored(self, client, store, auth_headers):
        headers = auth_headers(store.owner_a)

        plain = await client.get("/api/dashboard", headers=headers)
        spoofed = await client.get(
            "/api/dashboard", params={"tenantId": store.tenant_b}, headers=headers
        )

        assert plain.status_code == 200
        assert spoofed.json() == plain.json()
        assert plain.json() == {
            "success": True,
            "data": {"customers": 2, "orders": 3, "products": 2, "totalRevenue": 169.99},
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("endpoint", DATA_ENDPOINTS)
    async def test_store_owner_never_sees_other_tenant(self, client, store, auth_headers, endpoint):
        headers = auth_headers(store.owner_b)

        plain = await client.get(endpoint, headers=headers)
        spoofed = await client.get(endpoint, params={"tenantId": store.tenant_a}, headers=headers)

        assert plain.status_code == 200
        assert spoofed.json() == plain.json()

    @pytest.mark.asyncio
    async def test_store_owner_rows_belong_to_own_tenant(self, client, store, auth_headers):
        headers = auth_headers(store.owner_b)

        recent = (await client.get("/api/recent-orders", headers=headers)).json()["data"]
        top = (await client.get("/api/top-customers", headers=headers)).json()["data"]

        assert {o["tenantId"] for o in recent} == {store.tenant_b}
        assert {c["shop"] for c in top} == {"beta.myshopify.com"}

    @pytest.mark.asyncio
    async def test_store_owner_non_integer_tenant_param_is_ignored(self, client, store, auth_headers):
        response = await client.get(
            "/api/dashboard", params={"tenantId": "abc"}, headers=auth_headers(store.owner_a)
        )
        assert response.status_code == 200


class TestAdminScope:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{}, {"tenantId": ""}, {"tenantId": "null"}])
    async def test_admin_without_tenant_sees_all(self, client, store, auth_headers, params):
        response = await client.get("/api/dashboard", params=params, headers=auth_headers(store.admin))
        assert response.json()["data"] == {
            "customers": 3,
            "orders": 4,
            "products": 3,
            "totalRevenue": 469.99,
        }

    @pytest.mark.asyncio
    async def test_admin_selects_tenant(self, client, store, auth_headers):
        response = await client.get(
            "/api/dashboard", params={"tenantId": store.tenant_b}, headers=auth_headers(store.admin)
        )
        assert response.json()["data"]["totalRevenue"] == 300.0

    @pytest.mark.asyncio
    async def test_super_admin_same_as_admin(self, client, store, auth_headers):
        admin = await client.get("/api/top-customers", headers=auth_headers(store.admin))
        super_admin = await client.get("/api/top-customers", headers=auth_headers(store.super_admin))
        assert super_admin.json() == admin.json()

    @pytest.mark.asyncio
    async def test_unknown_tenant_is_empty(self, client, store, auth_headers):
        response = await client.get(
            "/api/recent-orders", params={"tenantId": 999}, headers=auth_headers(store.admin)
        )
        assert response.json() == {"success": True, "data": []}

    @pytest.mark.asyncio
    async def test_non_integer_tenant_rejected(self, client, store, auth_headers):
        response = await client.get(
            "/api/dashboard", params={"tenantId": "abc"}, headers=auth_headers(store.admin)
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_ERROR.value

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path,tenant_id",
        [
            ("/api/dashboard", "2147483648"),
            ("/api/dashboard", "99999999999999999999"),
            ("/api/recent-orders", "9223372036854775808"),
        ],
    )
    async def test_oversized_tenant_rejected(self, client, store, auth_headers, path, tenant_id):
        response = await client.get(
            path, params={"tenantId": tenant_id}, headers=auth_headers(store.admin)
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_ERROR.value
        assert response.json()["error"] == "tenantId is out of range"


# ============================================================================
# ENDPOINT SHAPES
# ============================================================================

class TestRevenueTrendEndpoint:

    @pytest.mark.asyncio
    async def test_single_order_two_days_ago(self, client, store, gamma_tenant, auth_headers):
        response = await client.get(
            "/api/revenue-trend",
            params={"days": 7, "tenantId": gamma_tenant},
            headers=auth_headers(store.admin),
        )

        points = response.json()["data"]
        assert len(points) == 7
        assert points[-1]["date"] == "2026-10-17"
        filled = [p for p in points if p["orders"]]
        assert filled == [{"date": "2026-10-15", "revenue": 150, "orders": 1, "orderCount": 1}]
        assert all(p["revenue"] == 0 and p["orderCount"] == 0 for p in points if p not in filled)

    @pytest.mark.asyncio
    async def test_default_is_thirty_days(self, client, store, auth_headers):
        response = await client.get("/api/revenue-trend", headers=auth_headers(store.owner_a))
        assert len(response.json()["data"]) == 30

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", ["0", "-3", "91", "abc"])
    async def test_days_out_of_bounds(self, client, store, auth_headers, days):
        response = await client.get(
            "/api/revenue-trend", params={"days": days}, headers=auth_headers(store.owner_a)
        )
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestTopCustomersEndpoint:

    @pytest.mark.asyncio
    async def test_shape(self, client, store, auth_headers):
        response = await client.get(
            "/api/top-customers", params={"limit": 1}, headers=auth_headers(store.owner_a)
        )
        assert response.json()["data"] == [
            {
                "id": "a1",
                "email": "ada@example.com",
                "firstName": "Ada",
                "lastName": "Lovelace",
                "totalSpend": 100.0,
                "orderCount": 1,
                "shop": "alpha.myshopify.com",
            }
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", ["0", "51"])
    async def test_limit_out_of_bounds(self, client, store, auth_headers, limit):
        response = await client.get(
            "/api/top-customers", params={"limit": limit}, headers=auth_headers(store.owner_a)
        )
        assert response.status_code == 400


class TestRecentOrdersEndpoint:

    @pytest.mark.asyncio
    async def test_shape(self, client, store, auth_headers):
        response = await client.get(
            "/api/recent-orders", params={"limit": 1}, headers=auth_headers(store.owner_a)
        )
        assert response.json()["data"] == [
            {
                "id": "oa1",
                "totalPrice": 100.0,
                "createdAt": "2026-10-16T15:00:00+00:00",
                "customer": {"name": "Ada Lovelace", "email": "ada@example.com"},
                "shop": "alpha.myshopify.com",
                "tenantId": store.tenant_a,
            }
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", ["0", "-1", "51"])
    async def test_limit_out_of_bounds(self, client, store, auth_headers, limit):
        response = await client.get(
            "/api/recent-orders", params={"limit": limit}, headers=auth_headers(store.owner_a)
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_ERROR.value

    @pytest.mark.asyncio
    async def test_guest_order_has_null_customer(self, client, store, auth_headers):
        response = await client.get("/api/recent-orders", headers=auth_headers(store.owner_a))
        orders = {o["id"]: o for o in response.json()["data"]}
        assert orders["oa3"]["customer"] is None


# ============================================================================
# AUTHENTICATION FAILURES
# ============================================================================

class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("endpoint", DATA_ENDPOINTS)
    async def test_missing_token(self, client, endpoint):
        response = await client.get(endpoint)
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Authentication token required",
            "code": ErrorCode.AUTH_REQUIRED.value,
        }

    @pytest.mark.asyncio
    async def test_expired_token(self, client, store, token_service):
        token = token_service.issue(store.owner_a, lifetime_minutes=-1)
        response = await client.get("/api/dashboard", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.TOKEN_EXPIRED.value

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get("/api/dashboard", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.INVALID_TOKEN.value

    @pytest.mark.asyncio
    async def test_inactive_user(self, client, store, auth_headers):
        response = await client.get("/api/dashboard", headers=auth_headers(store.inactive_owner))
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.INVALID_USER.value

    @pytest.mark.asyncio
    async def test_deleted_user(self, client, store, session_factory, auth_headers):
        headers = auth_headers(store.owner_b)
        async with session_factory() as session:
            async with session.begin():
                await session.execute(text("DELETE FROM users WHERE id = :id"), {"id": store.owner_b.id})

        response = await client.get("/api/dashboard", headers=headers)
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.INVALID_USER.value

    @pytest.mark.asyncio
    async def test_unknown_role(self, client, store, session_factory, auth_headers):
        headers = auth_headers(store.owner_b)
        async with session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(User).where(User.id == store.owner_b.id).values(role="GUEST")
                )

        response = await client.get("/api/dashboard", headers=headers)
        assert response.status_code == 403
        assert response.json()["code"] == ErrorCode.INVALID_ROLE.value

    @pytest.mark.asyncio
    async def test_role_change_applies_to_existing_token(self, client, store, session_factory, auth_headers):
        headers = auth_headers(store.owner_b)
        async with session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(User).where(User.id == store.owner_b.id).values(role="ADMIN")
                )

        response = await client.get("/api/dashboard", headers=headers)
        assert response.json()["data"]["orders"] == 4

    @pytest.mark.asyncio
    async def test_store_owner_without_tenant(self, client, store, auth_headers):
        response = await client.get("/api/dashboard", headers=auth_headers(store.orphan_owner))
        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Store owner must be associated with a tenant",
            "code": ErrorCode.SCOPE_MISCONFIGURED.value,
        }


# ============================================================================
# STORAGE FAILURES
# ============================================================================

class TestStorageFailures:

    @pytest.mark.asyncio
    async def test_aggregation_failure_is_generic(self, client, store, db_engine, auth_headers):
        async with db_engine.begin() as conn:
            await conn.execute(text("DROP TABLE products"))

        response = await client.get("/api/dashboard", headers=auth_headers(store.owner_a))

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to fetch dashboard data",
            "code": ErrorCode.AGGREGATION_FAILED.value,
        }

    @pytest.mark.asyncio
    async def test_user_lookup_failure_is_unavailable(self, app, client, store, tmp_path, auth_headers):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        broken = build_session_factory(engine)
        app.dependency_overrides[get_session_factory] = lambda: broken
        try:
            response = await client.get("/api/dashboard", headers=auth_headers(store.owner_a))
        finally:
            await engine.dispose()

        assert response.status_code == 503
        assert response.json()["code"] == ErrorCode.SERVICE_UNAVAILABLE.value
        assert "details" not in response.json()
