"""
FastAPI application entry point for Shop Insights.

Tenant isolation is enforced per route: every data route resolves its
ScopeFilter from the authenticated principal (see
shop_insights.platform.tenant_context). Errors leave the API in the
{"success": false, "error": ...} envelope.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shop_insights.api.routes import analytics
from shop_insights.api.routes import auth
from shop_insights.api.routes import health
from shop_insights.api.routes import store_data
from shop_insights.api.routes import webhooks_shopify
from shop_insights.config.settings import get_settings
from shop_insights.database.session import dispose_engines
from shop_insights.platform.errors import register_exception_handlers

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info("Starting Shop Insights API", extra={"env": settings.env})

    missing = [
        name for name, value in (
            ("JWT_SECRET", settings.jwt_secret),
            ("DATABASE_URL", settings.database_url),
        )
        if not value
    ]
    if missing:
        logger.warning(
            f"Service not fully configured (missing: {missing}). "
            "Protected endpoints will return 503."
        )
    if not settings.shopify_api_secret:
        logger.warning("SHOPIFY_API_SECRET not set; webhook signatures are not verified")

    yield

    # Shutdown
    await dispose_engines()
    logger.info("Shutting down Shop Insights API")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Shop Insights API",
        description="Multi-tenant Shopify analytics with tenant-scoped dashboards",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "X-Shopify-Topic",
            "X-Shopify-Shop-Domain",
            "X-Shopify-Hmac-Sha256",
        ],
    )

    register_exception_handlers(app)

    # Health endpoints (no authentication)
    app.include_router(health.router)

    # Login and webhooks (no bearer token)
    app.include_router(auth.router)
    app.include_router(webhooks_shopify.router)

    # Tenant-scoped dashboard data (bearer token required)
    app.include_router(analytics.router)
    app.include_router(store_data.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "development"
    )
