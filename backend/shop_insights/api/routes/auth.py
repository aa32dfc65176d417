"""
Login route.

POST /api/auth/login
    {"shop": "acme.myshopify.com", "accessToken": "..."}   store owner
    {"email": "admin@example.com", "password": "..."}      admin
"""

import logging

from fastapi import APIRouter, Depends

from shop_insights.api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LoginUser,
    TenantSummary,
)
from shop_insights.api.schemas.common import SuccessResponse
from shop_insights.auth.jwt import TokenService
from shop_insights.auth.middleware import get_token_service
from shop_insights.database.session import get_session_factory
from shop_insights.services.auth_service import AuthService
from shop_insights.services.storage import SessionFactory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=SuccessResponse[LoginResponse])
async def login(
    body: LoginRequest,
    session_factory: SessionFactory = Depends(get_session_factory),
    token_service: TokenService = Depends(get_token_service),
):
    result = await AuthService(session_factory, token_service).login(
        email=body.email,
        password=body.password,
        shop=body.shop,
        access_token=body.access_token,
    )
    user = result.user
    return SuccessResponse(
        data=LoginResponse(
            user=LoginUser(
                id=user.id,
                email=user.email,
                role=user.role,
                first_name=user.first_name,
                last_name=user.last_name,
                tenant_id=user.tenant_id,
                tenant=(
                    TenantSummary(id=result.tenant.id, shop=result.tenant.shop)
                    if result.tenant is not None
                    else None
                ),
                last_login=user.last_login,
            ),
            token=result.token,
        )
    )
