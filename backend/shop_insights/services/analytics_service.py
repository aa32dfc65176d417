"""
Aggregation engine for the merchant dashboard.

All operations are read-only, idempotent and bound to one ScopeFilter:
- dashboard_summary: customer/order/product counts and total revenue
- revenue_trend: revenue and order count per calendar day
- top_customers: customers ranked by lifetime spend
- recent_orders: most recently created orders

Each operation is all-or-nothing. A storage failure raises
AggregationError with a generic message; no partial result is returned.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Callable, Optional

from shop_insights.platform.tenant_context import ScopeFilter
from shop_insights.repositories.customers import CustomerRepository
from shop_insights.repositories.orders import OrderRepository
from shop_insights.repositories.products import ProductRepository
from shop_insights.services.formatting import (
    date_key,
    day_start,
    display_name,
    money,
    reference_date,
    round_money,
    to_decimal,
    trailing_day_keys,
    whole_units,
)
from shop_insights.services.storage import SessionFactory, run_read, translate_storage_errors

logger = logging.getLogger(__name__)

DEFAULT_TREND_DAYS = 30
DEFAULT_TOP_CUSTOMERS_LIMIT = 5
DEFAULT_RECENT_ORDERS_LIMIT = 10


@dataclass(frozen=True)
class DashboardSummary:
    customers: int
    orders: int
    products: int
    total_revenue: float


@dataclass(frozen=True)
class TrendPoint:
    date: str
    revenue: int
    orders: int


@dataclass(frozen=True)
class CustomerSpend:
    id: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    total_spend: float
    order_count: int
    shop: str


@dataclass(frozen=True)
class OrderCustomer:
    name: Optional[str]
    email: Optional[str]


@dataclass(frozen=True)
class RecentOrder:
    id: str
    total_price: float
    created_at: datetime
    customer: Optional[OrderCustomer]
    shop: str
    tenant_id: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsService:
    """
    Dashboard aggregations over one tenant scope.

    Usage:
        service = AnalyticsService(session_factory, scope)
        summary = await service.dashboard_summary()
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        scope: ScopeFilter,
        tz: tzinfo = timezone.utc,
        now: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self.scope = scope
        self.tz = tz
        self._now = now

    def _log_extra(self, operation: str) -> dict:
        return {"operation": operation, **self.scope.as_log_extra()}

    async def dashboard_summary(self) -> DashboardSummary:
        """
        Counts and revenue for the scope.

        The four reads are independent and run concurrently, each in its
        own session.
        """
        scope = self.scope
        async with translate_storage_errors(
            "Failed to fetch dashboard data", **self._log_extra("dashboard_summary")
        ):
            customers, orders, products, revenue = await asyncio.gather(
                run_read(self._session_factory, lambda s: CustomerRepository(s, scope).count()),
                run_read(self._session_factory, lambda s: OrderRepository(s, scope).count()),
                run_read(self._session_factory, lambda s: ProductRepository(s, scope).count()),
                run_read(self._session_factory, lambda s: OrderRepository(s, scope).total_revenue()),
            )

        return DashboardSummary(
            customers=customers,
            orders=orders,
            products=products,
            total_revenue=money(revenue),
        )

    async def revenue_trend(self, days: int = DEFAULT_TREND_DAYS) -> list[TrendPoint]:
        """
        Revenue per calendar day for the trailing `days` days ending today.

        Always returns exactly `days` points, oldest first, zero-filled.
        The query window opens at local midnight of the oldest bucket, so
        DST transitions inside the window do not shift it. Orders whose
        calendar day is not one of the buckets (clock skew at the window
        edge) are dropped.

        `days` must be at least 1; routes bound it before calling.
        """
        now = self._now()
        today = reference_date(now, self.tz)
        keys = trailing_day_keys(today, days)
        window_start = day_start(today - timedelta(days=days - 1), self.tz)

        async with translate_storage_errors(
            "Failed to fetch revenue trend data", **self._log_extra("revenue_trend")
        ):
            orders = await run_read(
                self._session_factory,
                lambda s: OrderRepository(s, self.scope).created_between(window_start, now),
            )

        revenue: dict[str, Decimal] = {key: Decimal("0") for key in keys}
        counts: dict[str, int] = {key: 0 for key in keys}
        dropped = 0
        for order in orders:
            key = date_key(order.created_at, self.tz)
            if key not in revenue:
                dropped += 1
                continue
            revenue[key] += to_decimal(order.total_price)
            counts[key] += 1

        if dropped:
            logger.debug(
                "Orders outside trend buckets dropped",
                extra={"dropped": dropped, **self._log_extra("revenue_trend")},
            )

        return [
            TrendPoint(date=key, revenue=whole_units(revenue[key]), orders=counts[key])
            for key in keys
        ]

    async def top_customers(self, limit: int = DEFAULT_TOP_CUSTOMERS_LIMIT) -> list[CustomerSpend]:
        """
        Customers ranked by total spend, highest first.

        Customers without orders have a spend of 0. Ties keep storage order
        (sorted() is stable).
        """
        async with translate_storage_errors(
            "Failed to fetch top customers data", **self._log_extra("top_customers")
        ):
            customers = await run_read(
                self._session_factory,
                lambda s: CustomerRepository(s, self.scope).list_in_storage_order(),
            )

        spends = []
        for customer in customers:
            total = sum((to_decimal(o.total_price) for o in customer.orders), Decimal("0"))
            spends.append(
                CustomerSpend(
                    id=customer.id,
                    email=customer.email,
                    first_name=customer.first_name,
                    last_name=customer.last_name,
                    total_spend=float(round_money(total)),
                    order_count=len(customer.orders),
                    shop=customer.tenant.shop,
                )
            )

        ranked = sorted(spends, key=lambda c: c.total_spend, reverse=True)
        return ranked[:limit]

    async def recent_orders(self, limit: int = DEFAULT_RECENT_ORDERS_LIMIT) -> list[RecentOrder]:
        """The `limit` newest orders with customer display names."""
        async with translate_storage_errors(
            "Failed to fetch recent orders data", **self._log_extra("recent_orders")
        ):
            orders = await run_read(
                self._session_factory,
                lambda s: OrderRepository(s, self.scope).most_recent(limit),
            )

        recent = []
        for order in orders:
            customer = None
            if order.customer is not None:
                customer = OrderCustomer(
                    name=display_name(
                        order.customer.first_name,
                        order.customer.last_name,
                        order.customer.email,
                    ),
                    email=order.customer.email,
                )
            recent.append(
                RecentOrder(
                    id=order.id,
                    total_price=money(order.total_price),
                    created_at=order.created_at,
                    customer=customer,
                    shop=order.tenant.shop,
                    tenant_id=order.tenant_id,
                )
            )
        return recent
