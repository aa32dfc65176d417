"""
Scoped listings of raw store records for the dashboard tables.

Customers, orders and products go through the tenant ScopeFilter. The
tenant listing is unscoped and must only be reachable by admin roles.
"""

import logging
from typing import Any

from shop_insights.platform.tenant_context import ScopeFilter
from shop_insights.repositories.customers import CustomerRepository
from shop_insights.repositories.orders import OrderRepository
from shop_insights.repositories.products import ProductRepository
from shop_insights.repositories.tenants import TenantRepository
from shop_insights.services.formatting import isoformat_utc, money
from shop_insights.services.storage import SessionFactory, run_read, translate_storage_errors

logger = logging.getLogger(__name__)


def _tenant_ref(tenant) -> dict[str, Any]:
    return {"id": tenant.id, "shop": tenant.shop}


class StoreDataService:
    """Read-only record listings over one scope."""

    def __init__(self, session_factory: SessionFactory, scope: ScopeFilter):
        self._session_factory = session_factory
        self.scope = scope

    async def list_customers(self) -> list[dict[str, Any]]:
        async with translate_storage_errors("Failed to fetch customers", **self.scope.as_log_extra()):
            customers = await run_read(
                self._session_factory,
                lambda s: CustomerRepository(s, self.scope).list_with_orders(),
            )
        return [
            {
                "id": c.id,
                "email": c.email,
                "firstName": c.first_name,
                "lastName": c.last_name,
                "tenantId": c.tenant_id,
                "createdAt": isoformat_utc(c.created_at),
                "tenant": _tenant_ref(c.tenant),
                "orders": [
                    {
                        "id": o.id,
                        "totalPrice": money(o.total_price),
                        "createdAt": isoformat_utc(o.created_at),
                    }
                    for o in c.orders
                ],
            }
            for c in customers
        ]

    async def list_orders(self) -> list[dict[str, Any]]:
        async with translate_storage_errors("Failed to fetch orders", **self.scope.as_log_extra()):
            orders = await run_read(
                self._session_factory,
                lambda s: OrderRepository(s, self.scope).list_with_relations(),
            )
        return [
            {
                "id": o.id,
                "totalPrice": money(o.total_price),
                "createdAt": isoformat_utc(o.created_at),
                "tenantId": o.tenant_id,
                "customerId": o.customer_id,
                "tenant": _tenant_ref(o.tenant),
                "customer": (
                    {
                        "id": o.customer.id,
                        "email": o.customer.email,
                        "firstName": o.customer.first_name,
                        "lastName": o.customer.last_name,
                    }
                    if o.customer is not None
                    else None
                ),
            }
            for o in orders
        ]

    async def list_products(self) -> list[dict[str, Any]]:
        async with translate_storage_errors("Failed to fetch products", **self.scope.as_log_extra()):
            products = await run_read(
                self._session_factory,
                lambda s: ProductRepository(s, self.scope).list_with_tenant(),
            )
        return [
            {
                "id": p.id,
                "title": p.title,
                "vendor": p.vendor,
                "price": money(p.price) if p.price is not None else None,
                "tenantId": p.tenant_id,
                "createdAt": isoformat_utc(p.created_at),
                "tenant": _tenant_ref(p.tenant),
            }
            for p in products
        ]


async def list_tenants(session_factory: SessionFactory) -> list[dict[str, Any]]:
    """Every tenant with record counts. Admin only; never returns credentials."""
    async with translate_storage_errors("Failed to fetch tenants"):
        rows = await run_read(session_factory, lambda s: TenantRepository(s).list_with_counts())
    return [
        {
            "id": row.tenant.id,
            "shop": row.tenant.shop,
            "createdAt": isoformat_utc(row.tenant.created_at),
            "counts": {
                "customers": row.customers,
                "products": row.products,
                "orders": row.orders,
                "users": row.users,
            },
        }
        for row in rows
    ]
