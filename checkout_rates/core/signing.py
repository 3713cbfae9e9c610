"""
Shopify callback signature verification.

Shopify signs CarrierService callbacks with HMAC-SHA256 over the raw request
body using the app's shared secret, and sends the base64 digest in the
X-Shopify-Hmac-Sha256 header.
"""
import base64
import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SHOPIFY_HMAC_HEADER = "X-Shopify-Hmac-Sha256"


def compute_shopify_hmac(body: bytes, secret: str) -> str:
    """Return the base64 HMAC-SHA256 digest Shopify would send for body."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_shopify_hmac(body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify a Shopify callback signature.

    Compares the raw digests in constant time so that equivalent base64
    encodings are accepted.
    """
    if not signature:
        return False

    try:
        received = base64.b64decode(signature.strip(), validate=True)
    except (ValueError, TypeError):
        logger.warning("Shopify HMAC header is not valid base64")
        return False

    expected = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return hmac.compare_digest(received, expected)
