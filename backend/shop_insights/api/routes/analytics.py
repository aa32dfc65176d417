"""
Dashboard aggregation routes.

SECURITY: Every route resolves its ScopeFilter through get_scope.
Store owners only ever see their own tenant, whatever tenantId says.

Endpoints:
- GET /api/dashboard
- GET /api/revenue-trend?days=
- GET /api/top-customers?limit=
- GET /api/recent-orders?limit=
"""

import logging
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, Query

from shop_insights.api.dependencies import bounded, get_clock, get_scope
from shop_insights.api.schemas.analytics import (
    DashboardSummaryResponse,
    OrderCustomerResponse,
    RecentOrderResponse,
    TopCustomerResponse,
    TrendPointResponse,
)
from shop_insights.api.schemas.common import SuccessResponse
from shop_insights.config.settings import Settings, get_settings
from shop_insights.database.session import get_session_factory
from shop_insights.platform.tenant_context import ScopeFilter
from shop_insights.services.analytics_service import (
    DEFAULT_RECENT_ORDERS_LIMIT,
    DEFAULT_TOP_CUSTOMERS_LIMIT,
    DEFAULT_TREND_DAYS,
    AnalyticsService,
)
from shop_insights.services.formatting import isoformat_utc
from shop_insights.services.storage import SessionFactory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analytics"])


def get_analytics_service(
    scope: ScopeFilter = Depends(get_scope),
    session_factory: SessionFactory = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AnalyticsService:
    """Get analytics service bound to the request's tenant scope."""
    return AnalyticsService(session_factory, scope, tz=settings.tzinfo, now=clock)


@router.get("/dashboard", response_model=SuccessResponse[DashboardSummaryResponse])
async def get_dashboard(service: AnalyticsService = Depends(get_analytics_service)):
    """Customer, order and product counts plus total revenue."""
    summary = await service.dashboard_summary()
    return SuccessResponse(
        data=DashboardSummaryResponse(
            customers=summary.customers,
            orders=summary.orders,
            products=summary.products,
            total_revenue=summary.total_revenue,
        )
    )


@router.get("/revenue-trend", response_model=SuccessResponse[list[TrendPointResponse]])
async def get_revenue_trend(
    days: int = Query(DEFAULT_TREND_DAYS, description="Trailing window length in days"),
    service: AnalyticsService = Depends(get_analytics_service),
    settings: Settings = Depends(get_settings),
):
    """Daily revenue for the trailing window, oldest day first."""
    days = bounded("days", days, settings.max_trend_days)
    points = await service.revenue_trend(days)
    return SuccessResponse(
        data=[
            TrendPointResponse(
                date=p.date,
                revenue=p.revenue,
                orders=p.orders,
                order_count=p.orders,
            )
            for p in points
        ]
    )


@router.get("/top-customers", response_model=SuccessResponse[list[TopCustomerResponse]])
async def get_top_customers(
    limit: int = Query(DEFAULT_TOP_CUSTOMERS_LIMIT),
    service: AnalyticsService = Depends(get_analytics_service),
    settings: Settings = Depends(get_settings),
):
    """Customers ranked by total spend."""
    limit = bounded("limit", limit, settings.max_result_limit)
    customers = await service.top_customers(limit)
    return SuccessResponse(
        data=[
            TopCustomerResponse(
                id=c.id,
                email=c.email,
                first_name=c.first_name,
                last_name=c.last_name,
                total_spend=c.total_spend,
                order_count=c.order_count,
                shop=c.shop,
            )
            for c in customers
        ]
    )


@router.get("/recent-orders", response_model=SuccessResponse[list[RecentOrderResponse]])
async def get_recent_orders(
    limit: int = Query(DEFAULT_RECENT_ORDERS_LIMIT),
    service: AnalyticsService = Depends(get_analytics_service),
    settings: Settings = Depends(get_settings),
):
    """Most recently created orders, newest first."""
    limit = bounded("limit", limit, settings.max_result_limit)
    orders = await service.recent_orders(limit)
    return SuccessResponse(
        data=[
            RecentOrderResponse(
                id=o.id,
                total_price=o.total_price,
                created_at=isoformat_utc(o.created_at),
                customer=(
                    OrderCustomerResponse(name=o.customer.name, email=o.customer.email)
                    if o.customer is not None
                    else None
                ),
                shop=o.shop,
                tenant_id=o.tenant_id,
            )
            for o in orders
        ]
    )
