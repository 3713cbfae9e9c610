"""
Error sanitization for the rates callback

- Unhandled exceptions while quoting -> generic 500 with an error id
- Shopify falls back to backup rates on any 500; the body is never shown at checkout
- Stack traces and the requesting shop -> logged only, not returned to client
"""
import logging
import traceback

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from checkout_rates.core.config import settings

logger = logging.getLogger(__name__)

SHOPIFY_SHOP_HEADER = "X-Shopify-Shop-Domain"


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Catch unhandled exceptions and sanitize error responses.

    The error id ties a checkout failure reported by a merchant back to the
    log line. DEBUG adds the exception type and message to the body.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            error_id = f"{request.client.host if request.client else 'unknown'}-{id(e)}"
            shop = request.headers.get(SHOPIFY_SHOP_HEADER, "unknown shop")
            logger.error(
                f"Unhandled exception quoting rates [{error_id}] for {shop}: "
                f"{type(e).__name__}: {str(e)}\n"
                f"Path: {request.method} {request.url.path}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            content = {
                "error": "Internal server error",
                "error_id": error_id,
            }
            if settings.DEBUG:
                content["message"] = str(e)
                content["type"] = type(e).__name__
            return JSONResponse(status_code=500, content=content)
