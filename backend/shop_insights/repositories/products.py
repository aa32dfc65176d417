"""Product reads, scoped by tenant."""

from sqlalchemy.orm import joinedload

from shop_insights.models.product import Product
from shop_insights.repositories.base_repo import ScopedRepository


class ProductRepository(ScopedRepository[Product]):

    model = Product

    async def list_with_tenant(self) -> list[Product]:
        statement = self._select(joinedload(Product.tenant)).order_by(
            Product.created_at.desc(), Product.id.desc()
        )
        return await self._all(statement)
