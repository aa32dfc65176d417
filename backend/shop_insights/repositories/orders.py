"""Order reads, scoped by tenant."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import joinedload

from shop_insights.models.order import Order
from shop_insights.repositories.base_repo import ScopedRepository
from shop_insights.services.formatting import to_decimal


class OrderRepository(ScopedRepository[Order]):

    model = Order

    async def total_revenue(self) -> Decimal:
        """Sum of total_price in scope; 0 when there are no orders."""
        statement = self._enforce_tenant_scope(
            select(func.coalesce(func.sum(Order.total_price), 0))
        )
        return to_decimal((await self.session.execute(statement)).scalar_one())

    async def list_with_relations(self) -> list[Order]:
        """Orders with tenant and customer loaded, newest first."""
        statement = self._select(
            joinedload(Order.tenant),
            joinedload(Order.customer),
        ).order_by(Order.created_at.desc(), Order.id.desc())
        return await self._all(statement)

    async def most_recent(self, limit: int) -> list[Order]:
        """The `limit` most recently created orders, newest first."""
        statement = (
            self._select(joinedload(Order.tenant), joinedload(Order.customer))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return await self._all(statement)

    async def created_between(self, start: datetime, end: datetime) -> list[Order]:
        """Orders created in [start, end], oldest first."""
        statement = (
            self._select()
            .where(Order.created_at >= start, Order.created_at <= end)
            .order_by(Order.created_at.asc())
        )
        return await self._all(statement)
