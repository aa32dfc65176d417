"""
Login flows.

Two ways to obtain an access token:

Store owner (shop login):
    The shop domain identifies the tenant. The tenant is upserted (its
    access credential refreshed), then the user is resolved by email
    (default owner@<shop>), else the tenant's existing store owner, else a
    new STORE_OWNER is created.

Admin (email login):
    The user must exist. When the account has a password hash, the
    password is required and checked with bcrypt.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.auth.jwt import TokenService
from shop_insights.auth.passwords import verify_password
from shop_insights.constants.permissions import Role
from shop_insights.models.base import utcnow
from shop_insights.models.tenant import Tenant
from shop_insights.models.user import User
from shop_insights.platform.errors import (
    AppError,
    AuthenticationError,
    ErrorCode,
    NotFoundError,
    RequestValidationFailed,
)
from shop_insights.platform.tenant_context import principal_from_user
from shop_insights.repositories.tenants import TenantRepository, UserRepository
from shop_insights.services.storage import SessionFactory

logger = logging.getLogger(__name__)

PLACEHOLDER_ACCESS_TOKEN = "temp-token"


@dataclass(frozen=True)
class LoginResult:
    user: User
    tenant: Optional[Tenant]
    token: str


def normalize_shop_domain(shop: str) -> str:
    """acme.myshopify.com/admin/ -> acme.myshopify.com"""
    shop = shop.strip().lower()
    for prefix in ("https://", "http://"):
        if shop.startswith(prefix):
            shop = shop[len(prefix):]
    shop = shop.rstrip("/")
    if shop.endswith("/admin"):
        shop = shop[: -len("/admin")]
    return shop


def default_owner_email(shop: str) -> str:
    return f"owner@{normalize_shop_domain(shop)}"


class AuthService:

    def __init__(self, session_factory: SessionFactory, token_service: TokenService):
        self._session_factory = session_factory
        self.token_service = token_service

    async def login(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        shop: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> LoginResult:
        """
        Authenticate and issue a token.

        Raises:
            RequestValidationFailed: Neither email nor shop given
            NotFoundError: Admin email unknown
            AuthenticationError: Bad password or inactive user
        """
        if not email and not shop:
            raise RequestValidationFailed("Email or shop domain is required")

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    if shop:
                        user, tenant = await self._store_owner_login(session, shop, email, access_token)
                    else:
                        user, tenant = await self._admin_login(session, email, password)
        except AppError:
            raise
        except SQLAlchemyError as e:
            logger.error("Login failed", extra={"error": str(e)}, exc_info=True)
            raise AppError("Authentication failed", details={"error": str(e)}) from e

        # Inactive users and unknown roles are rejected before a token exists
        principal_from_user(user)

        token = self.token_service.issue(user)
        logger.info("User logged in", extra={"user_id": user.id, "role": user.role})
        return LoginResult(user=user, tenant=tenant, token=token)

    async def _store_owner_login(
        self,
        session: AsyncSession,
        shop: str,
        email: Optional[str],
        access_token: Optional[str],
    ) -> tuple[User, Tenant]:
        shop = normalize_shop_domain(shop)
        tenants = TenantRepository(session)
        tenant, created = await tenants.get_or_create(
            shop, access_token or PLACEHOLDER_ACCESS_TOKEN
        )
        if not created and access_token:
            tenant.access_token = access_token

        users = UserRepository(session)
        user_email = email or default_owner_email(shop)
        user = await users.get_by_email(user_email)

        if user is not None:
            if user.role != Role.STORE_OWNER.value:
                # An admin account cannot be re-pinned to a shop by shop login
                raise AuthenticationError(
                    "Invalid credentials", code=ErrorCode.INVALID_CREDENTIALS
                )
            user.tenant_id = tenant.id
        else:
            user = await users.find_store_owner(tenant.id)
            if user is not None:
                user.email = user_email
            else:
                user = User(
                    email=user_email,
                    role=Role.STORE_OWNER.value,
                    tenant_id=tenant.id,
                    first_name="Store",
                    last_name="Owner",
                )
                session.add(user)
                logger.info(
                    "Store owner created",
                    extra={"tenant_id": tenant.id, "email": user_email},
                )

        user.last_login = utcnow()
        await session.flush()
        return user, tenant

    async def _admin_login(
        self,
        session: AsyncSession,
        email: str,
        password: Optional[str],
    ) -> tuple[User, Optional[Tenant]]:
        user = await UserRepository(session).get_by_email(email)
        if user is None:
            raise NotFoundError("Admin user not found")

        if user.password_hash:
            if not password or not verify_password(password, user.password_hash):
                logger.warning("Invalid admin credentials", extra={"user_id": user.id})
                raise AuthenticationError(
                    "Invalid credentials", code=ErrorCode.INVALID_CREDENTIALS
                )

        user.last_login = utcnow()
        await session.flush()
        return user, user.tenant
