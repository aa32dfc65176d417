# API routes
from shop_insights.api.routes import analytics
from shop_insights.api.routes import auth
from shop_insights.api.routes import health
from shop_insights.api.routes import store_data
from shop_insights.api.routes import webhooks_shopify

__all__ = ["analytics", "auth", "health", "store_data", "webhooks_shopify"]
