"""
Base mixins for database models.

Provides common functionality:
- CreatedAtMixin: created_at timestamp
- TenantScopedMixin: tenant_id for multi-tenant isolation
- utcnow: timezone-aware current time
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import declared_attr


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class CreatedAtMixin:
    """Mixin that adds a created_at timestamp column."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
        comment="Timestamp when record was created"
    )


class TenantScopedMixin:
    """
    Mixin that adds tenant_id column for multi-tenant isolation.

    SECURITY: reads of tenant-scoped models MUST go through a ScopeFilter
    (see shop_insights.platform.tenant_context). tenant_id never changes
    after the row is written.
    """

    @declared_attr
    def tenant_id(cls):
        return Column(
            Integer,
            ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            comment="Owning tenant. Immutable after creation."
        )
