"""
Request authentication.

get_current_principal is the FastAPI dependency every protected route
uses. It:
1. Reads the Authorization: Bearer <token> header
2. Verifies the token (TokenService)
3. Loads the user by id and requires it to be active
4. Builds the role-specific Principal and attaches it to request.state

The database row is authoritative: a role or tenant change takes effect on
the next request even if the token still carries old claims.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError

from shop_insights.auth.jwt import TokenConfig, TokenService
from shop_insights.config.settings import Settings, get_settings
from shop_insights.database.session import get_session_factory
from shop_insights.platform.errors import (
    AuthenticationError,
    ErrorCode,
    ServiceUnavailableError,
)
from shop_insights.platform.tenant_context import Principal, principal_from_user
from shop_insights.repositories.tenants import UserRepository
from shop_insights.services.storage import SessionFactory

logger = logging.getLogger(__name__)

# auto_error=False so missing credentials produce our 401 envelope
security = HTTPBearer(auto_error=False)


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    """FastAPI dependency for the configured TokenService."""
    return TokenService(TokenConfig.from_settings(settings))


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
    session_factory: SessionFactory = Depends(get_session_factory),
) -> Principal:
    """
    Authenticate the request and return its Principal.

    Raises:
        AuthenticationError: Missing/invalid/expired token, unknown or inactive user
        AuthorizationError: User has an unknown role
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationError("Authentication token required", code=ErrorCode.AUTH_REQUIRED)

    claims = token_service.verify(credentials.credentials)

    try:
        async with session_factory() as session:
            user = await UserRepository(session).get_by_id(claims.user_id)
    except SQLAlchemyError as e:
        logger.error("User lookup failed", extra={"error": str(e)}, exc_info=True)
        raise ServiceUnavailableError("Authentication failed", details={"error": str(e)}) from e

    if user is None:
        logger.warning(
            "Token for unknown user",
            extra={"user_id": claims.user_id, "path": request.url.path},
        )
        raise AuthenticationError("Invalid or inactive user", code=ErrorCode.INVALID_USER)

    principal = principal_from_user(user)
    request.state.principal = principal
    return principal
