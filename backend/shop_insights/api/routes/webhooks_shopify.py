"""
Shopify webhook handlers for order ingestion.

SECURITY: When SHOPIFY_API_SECRET is configured every webhook MUST carry a
valid X-Shopify-Hmac-Sha256 signature. Shopify signs webhooks with the
app's API secret.

Documentation: https://shopify.dev/docs/apps/webhooks/configuration/https
"""

import base64
import hashlib
import hmac
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import PlainTextResponse

from shop_insights.config.settings import Settings, get_settings
from shop_insights.database.session import get_session_factory
from shop_insights.platform.errors import AuthenticationError, ErrorCode, RequestValidationFailed
from shop_insights.services.auth_service import normalize_shop_domain
from shop_insights.services.ingestion_service import OrderIngestionService, OrderPayload
from shop_insights.services.storage import SessionFactory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

WEBHOOK_TOPIC_ORDERS_CREATE = "orders/create"


def verify_shopify_webhook(data: bytes, hmac_header: str, api_secret: str) -> bool:
    """
    Verify Shopify webhook HMAC signature.

    Shopify signs webhooks using HMAC-SHA256 with the app's API secret and
    sends the base64 digest in X-Shopify-Hmac-Sha256.
    """
    if not hmac_header or not api_secret:
        return False

    computed_hmac = hmac.new(api_secret.encode("utf-8"), data, hashlib.sha256)
    computed_digest = base64.b64encode(computed_hmac.digest()).decode("utf-8")

    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(computed_digest, hmac_header)


async def read_webhook_body(request: Request, settings: Settings) -> dict:
    """
    Read, authenticate and parse the webhook body.

    Raises:
        AuthenticationError: Signature missing or invalid (secret configured)
        RequestValidationFailed: Body is not JSON
    """
    body = await request.body()

    if settings.shopify_api_secret:
        hmac_header = request.headers.get("X-Shopify-Hmac-Sha256", "")
        if not verify_shopify_webhook(body, hmac_header, settings.shopify_api_secret):
            logger.warning(
                "Invalid webhook HMAC",
                extra={"shop_domain": request.headers.get("X-Shopify-Shop-Domain")},
            )
            raise AuthenticationError(
                "Invalid HMAC signature", code=ErrorCode.INVALID_CREDENTIALS
            )

    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.error("Invalid JSON in webhook body")
        raise RequestValidationFailed("Invalid JSON body")


@router.post("/orders/create", response_class=PlainTextResponse)
async def handle_order_created(
    request: Request,
    x_shopify_shop_domain: Optional[str] = Header(None, alias="X-Shopify-Shop-Domain"),
    x_shopify_topic: Optional[str] = Header(None, alias="X-Shopify-Topic"),
    settings: Settings = Depends(get_settings),
    session_factory: SessionFactory = Depends(get_session_factory),
):
    """
    Handle orders/create webhook from Shopify.

    Resolves (or creates) the tenant by shop domain, upserts the customer
    and inserts the order.
    """
    if not x_shopify_shop_domain or not x_shopify_shop_domain.strip():
        logger.warning("Missing shop domain header in webhook")
        raise RequestValidationFailed("Missing shop domain header")

    shop_domain = normalize_shop_domain(x_shopify_shop_domain)
    data = await read_webhook_body(request, settings)
    payload = OrderPayload.from_webhook(data)

    logger.info(
        "Order webhook received",
        extra={
            "shop_domain": shop_domain,
            "topic": x_shopify_topic or WEBHOOK_TOPIC_ORDERS_CREATE,
            "order_id": payload.id,
        },
    )

    await OrderIngestionService(session_factory).ingest_order(shop_domain, payload)
    return PlainTextResponse("Webhook received successfully", status_code=status.HTTP_200_OK)
