"""
User model.

A User is the persisted form of a Principal. STORE_OWNER users must be
linked to a tenant; ADMIN and SUPER_ADMIN users are not tenant-bound and
any tenant_id on them is ignored by scope resolution.

Only admin users carry a password hash. Store owners authenticate by
shop domain.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from shop_insights.constants.permissions import Role
from shop_insights.db_base import Base
from shop_insights.models.base import CreatedAtMixin


class User(Base, CreatedAtMixin):
    """Authenticated principal record."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash = Column(
        String(255),
        nullable=True,
        comment="bcrypt hash; null for store owners"
    )

    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)

    role = Column(
        String(32),
        nullable=False,
        default=Role.STORE_OWNER.value,
        comment="STORE_OWNER, ADMIN or SUPER_ADMIN"
    )

    tenant_id = Column(
        Integer,
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Required for STORE_OWNER, ignored for admin roles"
    )

    is_active = Column(Boolean, nullable=False, default=True)

    last_login = Column(DateTime(timezone=True), nullable=True)

    tenant = relationship("Tenant", back_populates="users", lazy="raise")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
