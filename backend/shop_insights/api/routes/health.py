"""
Health check endpoints.

- GET /        plain liveness string
- GET /health  liveness plus database reachability
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shop_insights.config.settings import Settings, get_settings
from shop_insights.database.session import get_session_factory
from shop_insights.platform.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    return "Server is running and healthy!"


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    database = "connected"
    try:
        session_factory = get_session_factory(settings)
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (ServiceUnavailableError, SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unavailable", extra={"error": str(e)})
        database = "unavailable"

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
    }
