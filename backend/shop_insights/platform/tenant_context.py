"""
Tenant scope resolution for Shop Insights.

CRITICAL SECURITY REQUIREMENTS:
- Every data-returning route computes its visibility boundary here
- STORE_OWNER principals are ALWAYS pinned to their own tenant; the
  tenantId query parameter is ignored for them
- ADMIN / SUPER_ADMIN may request one tenant or see all tenants
- An unknown role NEVER defaults to unrestricted access

Each role has its own Principal subclass that implements resolve_scope().
ROLE_PRINCIPALS maps every Role to its class and this module refuses to
import if a Role is missing, so adding a role forces explicit scope
handling.

A ScopeFilter is computed fresh for each request and never cached.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional

from shop_insights.constants.permissions import Role
from shop_insights.platform.errors import (
    AuthenticationError,
    AuthorizationError,
    ErrorCode,
    RequestValidationFailed,
    ScopeConfigurationError,
)

logger = logging.getLogger(__name__)

# Query-string values that mean "no tenant requested"
UNSET_TENANT_SENTINELS = frozenset({"", "null"})

# Tenant.id is a 32-bit INTEGER column
MIN_TENANT_ID = -(2**31)
MAX_TENANT_ID = 2**31 - 1


@dataclass(frozen=True)
class ScopeFilter:
    """
    Resolved tenant-visibility predicate.

    tenant_id None means "all tenants"; otherwise exactly that tenant.
    """

    tenant_id: Optional[int] = None

    @classmethod
    def all_tenants(cls) -> "ScopeFilter":
        return cls(tenant_id=None)

    @classmethod
    def for_tenant(cls, tenant_id: int) -> "ScopeFilter":
        return cls(tenant_id=tenant_id)

    @property
    def is_all_tenants(self) -> bool:
        return self.tenant_id is None

    def matches(self, tenant_id: Optional[int]) -> bool:
        """Check whether a record owned by tenant_id is visible."""
        return self.is_all_tenants or tenant_id == self.tenant_id

    def apply(self, statement, model):
        """
        Restrict a select() statement on a tenant-scoped model.

        Returns the statement unchanged for the all-tenants scope.
        """
        if self.is_all_tenants:
            return statement
        return statement.where(model.tenant_id == self.tenant_id)

    def as_log_extra(self) -> dict:
        return {"scope": "all" if self.is_all_tenants else self.tenant_id}


def parse_requested_tenant_id(requested_tenant_id: Optional[str]) -> Optional[int]:
    """
    Parse the tenantId query parameter.

    None, empty string and the literal "null" mean unset. Anything else
    must be a base-10 integer that fits the tenant id column. No existence
    check is made: an unknown id yields a filter that matches no rows.

    Raises:
        RequestValidationFailed: If the value is not an integer or is out
            of range for a tenant id
    """
    if requested_tenant_id is None:
        return None
    value = requested_tenant_id.strip()
    if value in UNSET_TENANT_SENTINELS:
        return None
    try:
        tenant_id = int(value, 10)
    except ValueError:
        raise RequestValidationFailed(
            "tenantId must be an integer",
            details={"tenantId": requested_tenant_id},
        )
    if not MIN_TENANT_ID <= tenant_id <= MAX_TENANT_ID:
        raise RequestValidationFailed(
            "tenantId is out of range",
            details={"tenantId": requested_tenant_id},
        )
    return tenant_id


class Principal(ABC):
    """
    The authenticated caller attached to a request.

    Subclasses exist per role; resolve_scope() is the only way a data
    route obtains its ScopeFilter.
    """

    role: ClassVar[Role]

    def __init__(
        self,
        user_id: int,
        email: str,
        tenant_id: Optional[int] = None,
        is_active: bool = True,
        last_login: Optional[datetime] = None,
    ):
        self.user_id = user_id
        self.email = email
        self.tenant_id = tenant_id
        self.is_active = is_active
        self.last_login = last_login

    @abstractmethod
    def resolve_scope(self, requested_tenant_id: Optional[str] = None) -> ScopeFilter:
        """Compute the data-visibility filter for this request."""

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(user_id={self.user_id}, "
            f"tenant_id={self.tenant_id})"
        )


class StoreOwnerPrincipal(Principal):
    """Store owner: always pinned to their own tenant."""

    role = Role.STORE_OWNER

    def resolve_scope(self, requested_tenant_id: Optional[str] = None) -> ScopeFilter:
        if self.tenant_id is None:
            # Corrupted identity data, not a client mistake
            logger.error(
                "Store owner has no tenant",
                extra={"user_id": self.user_id},
            )
            raise ScopeConfigurationError(
                "Store owner must be associated with a tenant",
                details={"user_id": self.user_id},
            )
        if requested_tenant_id and requested_tenant_id.strip() not in UNSET_TENANT_SENTINELS:
            logger.debug(
                "Ignoring tenantId parameter for store owner",
                extra={"user_id": self.user_id, "tenant_id": self.tenant_id},
            )
        return ScopeFilter.for_tenant(self.tenant_id)


class AdminPrincipal(Principal):
    """Platform admin: one requested tenant, or all tenants."""

    role = Role.ADMIN

    def resolve_scope(self, requested_tenant_id: Optional[str] = None) -> ScopeFilter:
        tenant_id = parse_requested_tenant_id(requested_tenant_id)
        if tenant_id is None:
            return ScopeFilter.all_tenants()
        return ScopeFilter.for_tenant(tenant_id)


class SuperAdminPrincipal(AdminPrincipal):
    """Super admin: same data visibility as ADMIN."""

    role = Role.SUPER_ADMIN


ROLE_PRINCIPALS: dict[Role, type[Principal]] = {
    Role.STORE_OWNER: StoreOwnerPrincipal,
    Role.ADMIN: AdminPrincipal,
    Role.SUPER_ADMIN: SuperAdminPrincipal,
}

_unhandled_roles = set(Role) - set(ROLE_PRINCIPALS)
if _unhandled_roles:
    raise RuntimeError(
        f"Roles without scope handling: {sorted(r.value for r in _unhandled_roles)}"
    )


def principal_from_user(user) -> Principal:
    """
    Build the Principal variant for a persisted User.

    Raises:
        AuthenticationError: If the user is inactive
        AuthorizationError: If the stored role is unknown
    """
    if not user.is_active:
        raise AuthenticationError(
            "Invalid or inactive user", code=ErrorCode.INVALID_USER
        )
    try:
        principal_class = ROLE_PRINCIPALS[Role(user.role)]
    except (ValueError, KeyError):
        logger.warning(
            "User has unknown role",
            extra={"user_id": user.id, "role": user.role},
        )
        raise AuthorizationError("Invalid user role", code=ErrorCode.INVALID_ROLE)

    return principal_class(
        user_id=user.id,
        email=user.email,
        tenant_id=user.tenant_id,
        is_active=user.is_active,
        last_login=user.last_login,
    )


def resolve_scope(
    principal: Principal,
    requested_tenant_id: Optional[str] = None,
) -> ScopeFilter:
    """
    Compute the ScopeFilter for a request.

    This is the single entry point used by every data route.

    Raises:
        AuthorizationError: If principal is not a known role variant
        ScopeConfigurationError: If a store owner has no tenant
        RequestValidationFailed: If an admin passes a non-integer tenantId
    """
    if not isinstance(principal, Principal) or type(principal) not in ROLE_PRINCIPALS.values():
        logger.warning(
            "Scope requested for unknown principal type",
            extra={"principal_type": type(principal).__name__},
        )
        raise AuthorizationError("Invalid user role", code=ErrorCode.INVALID_ROLE)

    scope = principal.resolve_scope(requested_tenant_id)
    logger.debug(
        "Resolved tenant scope",
        extra={"user_id": principal.user_id, "role": principal.role.value, **scope.as_log_extra()},
    )
    return scope
