"""
Runtime settings for the Shop Insights API.

All configuration comes from environment variables. Settings are read on
every call to get_settings() so that tests can change the environment (or
override the FastAPI dependency) without reloading modules.
"""

import os
import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEVELOPMENT_ENV = "development"


class Settings(BaseModel):
    """Typed view over the service environment."""

    env: str = "production"
    database_url: Optional[str] = None

    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "shop-insights"
    jwt_expires_minutes: int = Field(default=1440, gt=0)

    shopify_api_secret: Optional[str] = None

    reporting_timezone: str = "UTC"

    max_trend_days: int = Field(default=365, gt=0)
    max_result_limit: int = Field(default=100, gt=0)

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("reporting_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown reporting timezone: {value}") from e
        return value

    @property
    def is_development(self) -> bool:
        return self.env == DEVELOPMENT_ENV

    @property
    def auth_configured(self) -> bool:
        return bool(self.jwt_secret)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.reporting_timezone)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Raw strings are handed to pydantic, which parses the numeric values.

        Raises:
            ValidationError: A variable is malformed or out of bounds; the
                error names the offending field
        """
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            env=os.getenv("ENV", "production"),
            database_url=os.getenv("DATABASE_URL") or None,
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_issuer=os.getenv("JWT_ISSUER", "shop-insights"),
            jwt_expires_minutes=os.getenv("JWT_EXPIRES_MINUTES", "1440"),
            shopify_api_secret=os.getenv("SHOPIFY_API_SECRET") or None,
            reporting_timezone=os.getenv("REPORTING_TIMEZONE", "UTC"),
            max_trend_days=os.getenv("MAX_TREND_DAYS", "365"),
            max_result_limit=os.getenv("MAX_RESULT_LIMIT", "100"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


def get_settings() -> Settings:
    """FastAPI dependency returning the current settings."""
    return Settings.from_env()
