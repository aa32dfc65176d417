"""Runtime configuration loaded from environment variables."""

from shop_insights.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
