"""
Customer model.

Customer ids are supplied upstream (Shopify customer ids) and are unique
across the whole store. A customer belongs to exactly one tenant and is
never reassigned.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from shop_insights.db_base import Base
from shop_insights.models.base import CreatedAtMixin, TenantScopedMixin


class Customer(Base, CreatedAtMixin, TenantScopedMixin):

    __tablename__ = "customers"

    id = Column(String(64), primary_key=True, comment="Upstream customer id")
    email = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)

    tenant = relationship("Tenant", back_populates="customers", lazy="raise")
    orders = relationship("Order", back_populates="customer", lazy="raise")

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, tenant_id={self.tenant_id})>"
