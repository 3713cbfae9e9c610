"""
API dependencies
"""
import logging
from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Request, status

from checkout_rates.core.config import settings
from checkout_rates.core.signing import SHOPIFY_HMAC_HEADER, verify_shopify_hmac
from checkout_rates.modules.shipping.carriers.base import BaseCarrier
from checkout_rates.services.quote_service import ShippingQuoteService
from checkout_rates.services.rate_config import RateConfigProvider

logger = logging.getLogger(__name__)


def get_carrier(request: Request) -> BaseCarrier:
    """Carrier created in the application lifespan."""
    return request.app.state.carrier


def get_config_provider(request: Request) -> RateConfigProvider:
    return request.app.state.config_provider


def get_request_time() -> datetime:
    return datetime.now(timezone.utc)


def get_quote_service(
    carrier: BaseCarrier = Depends(get_carrier),
    config_provider: RateConfigProvider = Depends(get_config_provider),
) -> ShippingQuoteService:
    return ShippingQuoteService(
        carrier,
        config_provider,
        home_country=settings.HOME_COUNTRY,
        currency=settings.CURRENCY,
        local_delivery_description=settings.LOCAL_DELIVERY_DESCRIPTION,
    )


async def verify_shopify_request(request: Request) -> bytes:
    """
    Verify the Shopify HMAC signature and return the raw body.

    Without a shared secret, verification is skipped outside production.
    """
    body = await request.body()
    signature = request.headers.get(SHOPIFY_HMAC_HEADER)
    secret = settings.SHOPIFY_SHARED_SECRET

    if not secret:
        if settings.is_production:
            logger.error("SHOPIFY_SHARED_SECRET not set in production, rejecting request")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized: Signature verification unavailable",
            )
        logger.warning("SHOPIFY_SHARED_SECRET not set, skipping verification")
        return body

    if not signature:
        logger.warning("Missing X-Shopify-Hmac-Sha256 header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Missing HMAC signature",
        )

    if not verify_shopify_hmac(body, signature, secret):
        logger.warning("Shopify HMAC verification failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid HMAC signature",
        )

    return body
