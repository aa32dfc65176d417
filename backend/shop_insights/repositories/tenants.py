"""
Tenant and user lookups.

These are not tenant-scoped: they back authentication, webhook ingestion
and the admin-only tenant listing. Route handlers must gate access before
using them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from shop_insights.constants.permissions import Role
from shop_insights.models.customer import Customer
from shop_insights.models.order import Order
from shop_insights.models.product import Product
from shop_insights.models.tenant import Tenant
from shop_insights.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantCounts:
    tenant: Tenant
    customers: int
    products: int
    orders: int
    users: int


class TenantRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_shop(self, shop: str) -> Optional[Tenant]:
        result = await self.session.execute(select(Tenant).where(Tenant.shop == shop))
        return result.scalars().first()

    async def get_or_create(self, shop: str, access_token: str) -> tuple[Tenant, bool]:
        """
        Resolve a tenant by shop domain, creating it when unseen.

        Returns:
            (tenant, created)
        """
        tenant = await self.get_by_shop(shop)
        if tenant is not None:
            return tenant, False
        tenant = Tenant(shop=shop, access_token=access_token)
        self.session.add(tenant)
        await self.session.flush()
        logger.info("Tenant created", extra={"tenant_id": tenant.id, "shop": shop})
        return tenant, True

    async def list_with_counts(self) -> list[TenantCounts]:
        """Every tenant with record counts, oldest first."""

        def _count_by_tenant(model):
            return (
                select(func.count())
                .select_from(model)
                .where(model.tenant_id == Tenant.id)
                .correlate(Tenant)
                .scalar_subquery()
            )

        statement = select(
            Tenant,
            _count_by_tenant(Customer),
            _count_by_tenant(Product),
            _count_by_tenant(Order),
            _count_by_tenant(User),
        ).order_by(Tenant.created_at.asc(), Tenant.id.asc())

        result = await self.session.execute(statement)
        return [
            TenantCounts(
                tenant=tenant,
                customers=customers,
                products=products,
                orders=orders,
                users=users,
            )
            for tenant, customers, products, orders, users in result.all()
        ]


class UserRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(
            select(User).options(joinedload(User.tenant)).where(User.id == user_id)
        )
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).options(joinedload(User.tenant)).where(User.email == email)
        )
        return result.scalars().first()

    async def find_store_owner(self, tenant_id: int) -> Optional[User]:
        result = await self.session.execute(
            select(User)
            .options(joinedload(User.tenant))
            .where(User.tenant_id == tenant_id, User.role == Role.STORE_OWNER.value)
            .order_by(User.id.asc())
        )
        return result.scalars().first()
