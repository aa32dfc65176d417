"""Repository layer with tenant scope enforcement."""

from shop_insights.repositories.base_repo import (
    ScopedRepository,
    TenantIsolationError,
)
from shop_insights.repositories.customers import CustomerRepository
from shop_insights.repositories.orders import OrderRepository
from shop_insights.repositories.products import ProductRepository
from shop_insights.repositories.tenants import TenantCounts, TenantRepository, UserRepository

__all__ = [
    "ScopedRepository",
    "TenantIsolationError",
    "CustomerRepository",
    "OrderRepository",
    "ProductRepository",
    "TenantCounts",
    "TenantRepository",
    "UserRepository",
]
