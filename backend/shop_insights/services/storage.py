"""
Helpers for running reads against the injected session factory.

Every read opens its own AsyncSession so independent reads can run
concurrently. Storage failures surface as a single AppError carrying a
generic message; the underlying error is only attached as detail.
"""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shop_insights.platform.errors import AggregationError
from shop_insights.repositories.base_repo import TenantIsolationError

logger = logging.getLogger(__name__)

R = TypeVar("R")

SessionFactory = async_sessionmaker[AsyncSession]


@asynccontextmanager
async def translate_storage_errors(message: str, **log_extra):
    """
    Convert storage failures inside the block to AggregationError(message).
    """
    try:
        yield
    except (SQLAlchemyError, TenantIsolationError) as e:
        logger.error(
            message,
            extra={"error": str(e), "error_type": type(e).__name__, **log_extra},
            exc_info=True,
        )
        raise AggregationError(message, details={"error": str(e)}) from e


async def run_read(
    session_factory: SessionFactory,
    read: Callable[[AsyncSession], Awaitable[R]],
) -> R:
    """Run one read in a fresh session."""
    async with session_factory() as session:
        return await read(session)
