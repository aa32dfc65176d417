"""Login request/response models."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from shop_insights.api.schemas.common import CamelModel


class LoginRequest(CamelModel):
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = None
    shop: Optional[str] = Field(None, max_length=255)
    access_token: Optional[str] = Field(None, max_length=512)


class TenantSummary(CamelModel):
    id: int
    shop: str


class LoginUser(CamelModel):
    id: int
    email: str
    role: str
    first_name: Optional[str]
    last_name: Optional[str]
    tenant_id: Optional[int]
    tenant: Optional[TenantSummary]
    last_login: Optional[datetime]


class LoginResponse(CamelModel):
    user: LoginUser
    token: str
