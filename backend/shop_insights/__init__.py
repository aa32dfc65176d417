"""Shop Insights: multi-tenant Shopify analytics backend."""

__version__ = "1.0.0"
