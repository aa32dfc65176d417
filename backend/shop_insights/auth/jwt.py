"""
Access token issuance and verification.

Tokens are HS256 JWTs signed with JWT_SECRET. Claims:
- sub: user id (string)
- email, role, tenant_id: informational copies; the database row loaded
  for `sub` is authoritative on every request
- iss, iat, exp

Expired tokens get a distinct error code (TOKEN_EXPIRED) so the client can
silently refresh instead of showing a login screen.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel, field_validator

from shop_insights.config.settings import Settings
from shop_insights.platform.errors import (
    AuthenticationError,
    ErrorCode,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)


class TokenConfig(BaseModel):
    """Configuration for access token signing."""
    jwt_secret: str
    algorithm: str = "HS256"
    issuer: str = "shop-insights"
    lifetime_minutes: int = 1440

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        if not settings.jwt_secret:
            raise ServiceUnavailableError("Authentication not configured")
        return cls(
            jwt_secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            lifetime_minutes=settings.jwt_expires_minutes,
        )


class AccessTokenClaims(BaseModel):
    """Decoded access token payload."""
    sub: str
    email: str
    role: str
    tenant_id: Optional[int] = None
    iss: str
    iat: int
    exp: int

    @field_validator("sub")
    @classmethod
    def _numeric_subject(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("sub must be a user id")
        return value

    @property
    def user_id(self) -> int:
        return int(self.sub)


class TokenService:
    """Signs and verifies access tokens."""

    def __init__(self, config: TokenConfig):
        self.config = config

    def issue(self, user, lifetime_minutes: Optional[int] = None) -> str:
        """Sign an access token for a user."""
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=lifetime_minutes or self.config.lifetime_minutes)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "tenant_id": user.tenant_id,
            "iss": self.config.issuer,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        token = jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.algorithm)
        logger.info(
            "Issued access token",
            extra={"user_id": user.id, "role": user.role, "expires_at": exp.isoformat()},
        )
        return token

    def verify(self, token: str) -> AccessTokenClaims:
        """
        Verify signature, issuer and expiry.

        Raises:
            AuthenticationError: TOKEN_EXPIRED or INVALID_TOKEN
        """
        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options={"require": ["sub", "exp", "iat", "iss"]},
            )
            return AccessTokenClaims(**payload)
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired", code=ErrorCode.TOKEN_EXPIRED)
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid access token", extra={"error": str(e)})
            raise AuthenticationError("Invalid token", code=ErrorCode.INVALID_TOKEN)
        except (TypeError, ValueError) as e:
            # Signed by us but with claims we cannot interpret
            logger.warning("Malformed access token claims", extra={"error": str(e)})
            raise AuthenticationError("Invalid token", code=ErrorCode.INVALID_TOKEN)
