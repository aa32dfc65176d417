"""
Shopify orders/create webhook ingestion.

For each event:
1. Resolve the tenant by shop domain, creating it for unseen shops
2. Upsert the customer by upstream id when the payload has one
3. Insert the order

Steps 2 and 3 run in a single transaction. A customer always stays with
the tenant that first created it; an event from another shop that
references that customer id is stored as a guest order.

Duplicate delivery of the same order id is not deduplicated here: the
insert fails on the primary key and the caller sees a 500.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.models.customer import Customer
from shop_insights.models.order import Order
from shop_insights.platform.errors import IngestionError, RequestValidationFailed
from shop_insights.repositories.tenants import TenantRepository
from shop_insights.services.storage import SessionFactory

logger = logging.getLogger(__name__)

WEBHOOK_ACCESS_TOKEN = "webhook-auto-created"


@dataclass(frozen=True)
class CustomerPayload:
    id: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]


@dataclass(frozen=True)
class OrderPayload:
    """Validated subset of a Shopify order webhook body."""
    id: str
    total_price: Decimal
    created_at: datetime
    customer: Optional[CustomerPayload]

    @classmethod
    def from_webhook(cls, data: dict[str, Any]) -> "OrderPayload":
        """
        Validate the fields ingestion needs.

        Raises:
            RequestValidationFailed: Missing id, bad total_price or created_at
        """
        if not isinstance(data, dict):
            raise RequestValidationFailed("Webhook body must be a JSON object")

        order_id = data.get("id")
        if order_id is None or str(order_id).strip() == "":
            raise RequestValidationFailed("Order id is required")

        try:
            total_price = Decimal(str(data.get("total_price")))
        except (InvalidOperation, ValueError):
            raise RequestValidationFailed(
                "total_price must be a decimal number",
                details={"total_price": data.get("total_price")},
            )
        if not total_price.is_finite() or total_price < 0:
            raise RequestValidationFailed(
                "total_price must be a non-negative number",
                details={"total_price": str(data.get("total_price"))},
            )

        created_at = _parse_timestamp(data.get("created_at"))

        customer = None
        raw_customer = data.get("customer")
        if isinstance(raw_customer, dict) and raw_customer.get("id") is not None:
            customer = CustomerPayload(
                id=str(raw_customer["id"]),
                email=raw_customer.get("email"),
                first_name=raw_customer.get("first_name"),
                last_name=raw_customer.get("last_name"),
            )

        return cls(
            id=str(order_id),
            total_price=total_price,
            created_at=created_at,
            customer=customer,
        )


def _parse_timestamp(value: Any) -> datetime:
    """ISO-8601 string to an aware UTC datetime (missing -> now)."""
    if value is None:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise RequestValidationFailed(
            "created_at must be an ISO-8601 timestamp", details={"created_at": value}
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class IngestionResult:
    tenant_id: int
    order_id: str
    customer_id: Optional[str]
    tenant_created: bool


class OrderIngestionService:

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def ingest_order(self, shop_domain: str, payload: OrderPayload) -> IngestionResult:
        """
        Store one order event.

        Raises:
            IngestionError: Storage failure (nothing from the event is kept)
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    tenant, created = await TenantRepository(session).get_or_create(
                        shop_domain, WEBHOOK_ACCESS_TOKEN
                    )
                    customer_id = None
                    if payload.customer is not None:
                        customer_id = await self._upsert_customer(
                            session, tenant.id, payload.customer
                        )
                    session.add(
                        Order(
                            id=payload.id,
                            total_price=payload.total_price,
                            created_at=payload.created_at,
                            tenant_id=tenant.id,
                            customer_id=customer_id,
                        )
                    )
        except SQLAlchemyError as e:
            logger.error(
                "Order ingestion failed",
                extra={"shop_domain": shop_domain, "order_id": payload.id, "error": str(e)},
                exc_info=True,
            )
            raise IngestionError("Internal Server Error", details={"error": str(e)}) from e

        logger.info(
            "Order ingested",
            extra={
                "tenant_id": tenant.id,
                "order_id": payload.id,
                "customer_id": customer_id,
                "tenant_created": created,
            },
        )
        return IngestionResult(
            tenant_id=tenant.id,
            order_id=payload.id,
            customer_id=customer_id,
            tenant_created=created,
        )

    async def _upsert_customer(
        self,
        session: AsyncSession,
        tenant_id: int,
        payload: CustomerPayload,
    ) -> Optional[str]:
        """
        Create or refresh a customer. Returns the id to link the order to,
        or None when the customer belongs to another tenant.
        """
        result = await session.execute(select(Customer).where(Customer.id == payload.id))
        customer = result.scalars().first()

        if customer is None:
            session.add(
                Customer(
                    id=payload.id,
                    email=payload.email,
                    first_name=payload.first_name,
                    last_name=payload.last_name,
                    tenant_id=tenant_id,
                )
            )
            await session.flush()
            return payload.id

        if customer.tenant_id != tenant_id:
            logger.warning(
                "Customer id already owned by another tenant; storing guest order",
                extra={
                    "customer_id": payload.id,
                    "owner_tenant_id": customer.tenant_id,
                    "event_tenant_id": tenant_id,
                },
            )
            return None

        customer.email = payload.email
        customer.first_name = payload.first_name
        customer.last_name = payload.last_name
        return customer.id
