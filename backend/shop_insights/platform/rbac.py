"""
Role-Based Access Control (RBAC) enforcement.

CRITICAL SECURITY REQUIREMENTS:
- RBAC MUST be enforced server-side for every protected endpoint
- UI role gating is NOT security; treat it as UX only

Usage:
    from shop_insights.platform.rbac import require_roles

    @router.get("/api/tenants")
    async def list_tenants(principal: Principal = Depends(require_roles(*ADMIN_ROLES))):
        ...
"""

import logging
from typing import Callable

from fastapi import Depends, Request

from shop_insights.auth.middleware import get_current_principal
from shop_insights.constants.permissions import Role
from shop_insights.platform.errors import AuthorizationError, ErrorCode
from shop_insights.platform.tenant_context import Principal

logger = logging.getLogger(__name__)


def require_roles(*roles: Role) -> Callable:
    """
    Dependency factory: allow only principals holding one of `roles`.

    Raises:
        AuthorizationError: 403 when the role is not allowed
    """
    allowed = frozenset(roles)

    async def dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not principal.has_role(*allowed):
            logger.warning(
                "RBAC check failed",
                extra={
                    "user_id": principal.user_id,
                    "role": principal.role.value,
                    "required": sorted(r.value for r in allowed),
                    "path": request.url.path,
                },
            )
            raise AuthorizationError(
                "Insufficient permissions", code=ErrorCode.INSUFFICIENT_PERMISSIONS
            )
        return principal

    return dependency
