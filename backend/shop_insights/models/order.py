"""
Order model.

created_at is the upstream order creation time, not the ingestion time.
total_price is currency-agnostic and never negative. Guest orders have no
customer.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from shop_insights.db_base import Base
from shop_insights.models.base import CreatedAtMixin, TenantScopedMixin


class Order(Base, CreatedAtMixin, TenantScopedMixin):

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
    )

    id = Column(String(64), primary_key=True, comment="Upstream order id")

    total_price = Column(Numeric(12, 2), nullable=False)

    customer_id = Column(
        String(64),
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    tenant = relationship("Tenant", back_populates="orders", lazy="raise")
    customer = relationship("Customer", back_populates="orders", lazy="raise")

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, tenant_id={self.tenant_id}, total={self.total_price})>"
