"""
Rate limiting for the Shopify rates callback

Uses SlowAPI for in-memory, per-client limits. Only POST /rates carries a
limit (RATE_LIMIT_RATES); health and test-rate routes are never throttled.
"""
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from checkout_rates.core.config import settings

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Get client IP, respecting X-Forwarded-For for proxied requests.
    Falls back to direct IP if header not present.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    429 for a throttled rate request.

    Shopify shows its backup rates for that checkout while the window lasts,
    so the body names the window and Retry-After carries it in seconds.
    """
    logger.warning(
        f"Rate requests throttled for {get_client_ip(request)} on {request.url.path} ({exc.detail})"
    )

    window = exc.detail.split(" per ", 1)[-1].strip() if exc.detail else "1 minute"
    retry_seconds = exc.limit.limit.get_expiry()

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": f"Too many shipping rate requests. Please try again in {window}.",
            "retry_after": window,
        },
        headers={"Retry-After": str(retry_seconds)},
    )
