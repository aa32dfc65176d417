"""Product model (upstream catalog item, tenant-scoped)."""

from sqlalchemy import Column, Numeric, String
from sqlalchemy.orm import relationship

from shop_insights.db_base import Base
from shop_insights.models.base import CreatedAtMixin, TenantScopedMixin


class Product(Base, CreatedAtMixin, TenantScopedMixin):

    __tablename__ = "products"

    id = Column(String(64), primary_key=True, comment="Upstream product id")
    title = Column(String(255), nullable=False)
    vendor = Column(String(255), nullable=True)
    price = Column(Numeric(12, 2), nullable=True)

    tenant = relationship("Tenant", back_populates="products", lazy="raise")

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title={self.title})>"
