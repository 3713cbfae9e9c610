"""
Checkout Shipping Rates
FastAPI application entry point

- Rate limiting with SlowAPI
- Error sanitization middleware
- Request size limits
- Carrier HTTP client lifecycle management
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from checkout_rates import __version__
from checkout_rates.api.routes import rates
from checkout_rates.core.cache import ExpiringCache
from checkout_rates.core.config import settings
from checkout_rates.core.error_handler import ErrorSanitizationMiddleware
from checkout_rates.core.exceptions import CarrierError, ConfigLoadError, InvalidConfiguration
from checkout_rates.core.rate_limit import limiter, rate_limit_exceeded_handler
from checkout_rates.modules.shipping import CarrierFactory
from checkout_rates.services.rate_config import RateConfigProvider

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the shared caches and the carrier on startup, close the carrier
    HTTP client on shutdown.
    """
    token_cache = ExpiringCache(max_size=8)
    config_cache = ExpiringCache(default_ttl_seconds=settings.RATE_CONFIG_TTL_SECONDS, max_size=1)

    app.state.token_cache = token_cache
    app.state.config_provider = RateConfigProvider(settings.RATE_CONFIG_PATH, config_cache)
    app.state.carrier = CarrierFactory.create(settings.CARRIER, token_cache=token_cache)

    if not settings.RATE_CONFIG_PATH:
        logger.warning("RATE_CONFIG_PATH not set, quoting with built-in defaults and no local delivery zips")
    logger.info(f"{settings.APP_NAME} started: carrier={settings.CARRIER} environment={settings.ENVIRONMENT}")

    yield

    await app.state.carrier.close()
    logger.info("Carrier HTTP client closed")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(CarrierError)
async def carrier_error_handler(request: Request, exc: CarrierError):
    logger.error(f"Failed to get carrier rates [{exc.code}]: {exc.message}")
    return JSONResponse(status_code=502, content={"error": "Failed to retrieve shipping rates"})


@app.exception_handler(ConfigLoadError)
@app.exception_handler(InvalidConfiguration)
async def configuration_error_handler(request: Request, exc):
    logger.error(f"Rate configuration error [{exc.code}]: {exc.message} {exc.details}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests that exceed the size limit."""

    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > settings.MAX_REQUEST_BODY_BYTES:
            logger.warning(
                f"Request size limit exceeded: {content_length} bytes from "
                f"{request.client.host if request.client else 'unknown'}"
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": "request_too_large",
                    "message": f"Request body exceeds maximum size of {settings.MAX_REQUEST_BODY_BYTES} bytes",
                },
            )
        return await call_next(request)


app.add_middleware(RequestSizeLimitMiddleware)

# Error sanitization (catches unhandled exceptions)
app.add_middleware(ErrorSanitizationMiddleware)

app.include_router(rates.router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
