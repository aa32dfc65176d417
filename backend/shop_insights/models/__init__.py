"""
SQLAlchemy models for Shop Insights.

Importing this package registers every table on Base.metadata.
"""

from shop_insights.models.tenant import Tenant
from shop_insights.models.user import User
from shop_insights.models.customer import Customer
from shop_insights.models.order import Order
from shop_insights.models.product import Product

__all__ = [
    "Tenant",
    "User",
    "Customer",
    "Order",
    "Product",
]
