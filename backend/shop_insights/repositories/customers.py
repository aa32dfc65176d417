"""Customer reads, scoped by tenant."""

from sqlalchemy.orm import joinedload, selectinload

from shop_insights.models.customer import Customer
from shop_insights.repositories.base_repo import ScopedRepository


class CustomerRepository(ScopedRepository[Customer]):

    model = Customer

    async def list_with_orders(self) -> list[Customer]:
        """Customers with tenant and orders loaded, newest first."""
        statement = self._select(
            joinedload(Customer.tenant),
            selectinload(Customer.orders),
        ).order_by(Customer.created_at.desc(), Customer.id.desc())
        return await self._all(statement)

    async def list_in_storage_order(self) -> list[Customer]:
        """
        Customers with tenant and orders loaded, oldest first.

        The order is deterministic so that ranking ties keep a stable,
        reproducible sequence.
        """
        statement = self._select(
            joinedload(Customer.tenant),
            selectinload(Customer.orders),
        ).order_by(Customer.created_at.asc(), Customer.id.asc())
        return await self._all(statement)
