"""
Canonical roles for Shop Insights.

IMPORTANT: This is the single source of truth for roles. Frontend gating is
UX only; server-side scope resolution is the security boundary.

Role Hierarchy:
- STORE_OWNER: pinned to exactly one tenant
- ADMIN: may view any single tenant or all tenants
- SUPER_ADMIN: same data visibility as ADMIN
"""

from enum import Enum
from typing import FrozenSet


class Role(str, Enum):
    """User roles as stored on User.role."""
    STORE_OWNER = "STORE_OWNER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


# Roles that may choose a tenant per request and list all tenants
ADMIN_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
