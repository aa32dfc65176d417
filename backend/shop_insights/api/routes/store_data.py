"""
Raw record listing routes.

- GET /api/customers, /api/orders, /api/products: tenant scoped
- GET /api/tenants: ADMIN / SUPER_ADMIN only
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from shop_insights.api.dependencies import get_scope
from shop_insights.api.schemas.common import SuccessResponse
from shop_insights.constants.permissions import ADMIN_ROLES
from shop_insights.database.session import get_session_factory
from shop_insights.platform.rbac import require_roles
from shop_insights.platform.tenant_context import Principal, ScopeFilter
from shop_insights.services.storage import SessionFactory
from shop_insights.services.store_data_service import StoreDataService, list_tenants

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["store-data"])

ListResponse = SuccessResponse[list[dict[str, Any]]]


def get_store_data_service(
    scope: ScopeFilter = Depends(get_scope),
    session_factory: SessionFactory = Depends(get_session_factory),
) -> StoreDataService:
    return StoreDataService(session_factory, scope)


@router.get("/customers", response_model=ListResponse)
async def get_customers(service: StoreDataService = Depends(get_store_data_service)):
    return ListResponse(data=await service.list_customers())


@router.get("/orders", response_model=ListResponse)
async def get_orders(service: StoreDataService = Depends(get_store_data_service)):
    return ListResponse(data=await service.list_orders())


@router.get("/products", response_model=ListResponse)
async def get_products(service: StoreDataService = Depends(get_store_data_service)):
    return ListResponse(data=await service.list_products())


@router.get("/tenants", response_model=ListResponse)
async def get_tenants(
    principal: Principal = Depends(require_roles(*ADMIN_ROLES)),
    session_factory: SessionFactory = Depends(get_session_factory),
):
    """All tenants with record counts."""
    tenants = await list_tenants(session_factory)
    logger.info(
        "Tenants listed",
        extra={"user_id": principal.user_id, "count": len(tenants)},
    )
    return ListResponse(data=tenants)
