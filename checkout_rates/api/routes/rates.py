"""
Shopify CarrierService callback

POST /rates  - signed rate request from checkout
GET  /rates  - test rates only (?test=true)
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from checkout_rates.api.deps import get_quote_service, get_request_time, verify_shopify_request
from checkout_rates.core.config import settings
from checkout_rates.core.rate_limit import limiter
from checkout_rates.schemas.shipping import ErrorResponse, RateListResponse, RateRequestPayload, ShippingRateOut
from checkout_rates.services.lead_times import to_utc_date
from checkout_rates.services.quote_service import ShippingQuoteService
from checkout_rates.services.rate_assembler import PricedOffer, build_test_offers

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rates"])


def offers_to_response(offers: List[PricedOffer]) -> RateListResponse:
    return RateListResponse(rates=[ShippingRateOut(**offer.to_dict()) for offer in offers])


@router.post(
    "/rates",
    response_model=RateListResponse,
    response_model_exclude_none=True,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
@limiter.limit(settings.RATE_LIMIT_RATES)
async def get_shipping_rates(
    request: Request,
    test: Optional[str] = Query(None),
    body: bytes = Depends(verify_shopify_request),
    service: ShippingQuoteService = Depends(get_quote_service),
    now: datetime = Depends(get_request_time),
):
    """
    Quote shipping for a checkout cart.

    Always answers 200 with a (possibly empty) rate list for carts we can
    read. Carrier and configuration failures are raised and mapped to error
    responses by the application's exception handlers.
    """
    if test == "true":
        logger.info("Test mode enabled - returning dummy rates")
        return offers_to_response(build_test_offers(to_utc_date(now), settings.CURRENCY))

    try:
        payload = RateRequestPayload.model_validate_json(body)
    except ValidationError as e:
        logger.error(f"Failed to parse rate request body: {e.error_count()} error(s)")
        return RateListResponse(rates=[])

    offers = await service.get_rates(payload.rate, now)
    return offers_to_response(offers)


@router.get("/rates", response_model=RateListResponse, response_model_exclude_none=True)
async def get_test_rates(
    test: Optional[str] = Query(None),
    now: datetime = Depends(get_request_time),
):
    if test != "true":
        return JSONResponse(status_code=405, content={"error": "GET only allowed with ?test=true"})

    logger.info("Test mode (GET) - returning dummy rates")
    return offers_to_response(build_test_offers(to_utc_date(now), settings.CURRENCY))
