"""Response models for dashboard aggregations."""

from typing import Optional

from shop_insights.api.schemas.common import CamelModel


class DashboardSummaryResponse(CamelModel):
    customers: int
    orders: int
    products: int
    total_revenue: float


class TrendPointResponse(CamelModel):
    """
    One calendar day. `orders` and `orderCount` carry the same value;
    the dashboard chart reads `orders`.
    """
    date: str
    revenue: int
    orders: int
    order_count: int


class TopCustomerResponse(CamelModel):
    id: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    total_spend: float
    order_count: int
    shop: str


class OrderCustomerResponse(CamelModel):
    name: Optional[str]
    email: Optional[str]


class RecentOrderResponse(CamelModel):
    id: str
    total_price: float
    created_at: str
    customer: Optional[OrderCustomerResponse]
    shop: str
    tenant_id: int
