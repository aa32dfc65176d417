"""
Tenant model.

A Tenant is one onboarded Shopify store and the unit of data isolation.
Tenant.id is the tenant_id referenced by every tenant-scoped model.

Tenants are created on first store-owner login or on the first webhook
from an unseen shop domain. They are never deleted by the API.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from shop_insights.db_base import Base
from shop_insights.models.base import CreatedAtMixin


class Tenant(Base, CreatedAtMixin):
    """One Shopify store."""

    __tablename__ = "tenants"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Primary key - this IS the tenant_id used across all models"
    )

    shop = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Shop domain, e.g. acme.myshopify.com"
    )

    access_token = Column(
        String(512),
        nullable=False,
        comment="Upstream access credential. Never returned by the API."
    )

    users = relationship("User", back_populates="tenant", lazy="raise")
    customers = relationship("Customer", back_populates="tenant", lazy="raise")
    orders = relationship("Order", back_populates="tenant", lazy="raise")
    products = relationship("Product", back_populates="tenant", lazy="raise")

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, shop={self.shop})>"
