"""
Shared route dependencies.

get_scope is how every data route obtains its ScopeFilter: principal from
the bearer token, optional tenantId from the query string, resolved by
platform.tenant_context.resolve_scope.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Depends, Query

from shop_insights.auth.middleware import get_current_principal
from shop_insights.platform.errors import RequestValidationFailed
from shop_insights.platform.tenant_context import Principal, ScopeFilter, resolve_scope


def get_scope(
    tenant_id: Optional[str] = Query(
        None,
        alias="tenantId",
        description="Tenant to view (admins only; ignored for store owners)",
    ),
    principal: Principal = Depends(get_current_principal),
) -> ScopeFilter:
    return resolve_scope(principal, tenant_id)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Callable[[], datetime]:
    """Current-time source for date-windowed aggregations."""
    return _utcnow


def bounded(name: str, value: int, maximum: int) -> int:
    """
    Check 1 <= value <= maximum.

    Raises:
        RequestValidationFailed: Out of bounds
    """
    if value < 1 or value > maximum:
        raise RequestValidationFailed(
            f"{name} must be between 1 and {maximum}",
            details={name: value},
        )
    return value
