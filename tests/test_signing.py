"""
Tests for Shopify HMAC signing.
"""
import base64
import hashlib
import hmac

from checkout_rates.core.signing import compute_shopify_hmac, verify_shopify_hmac

SECRET = "shpss_test_secret"
BODY = b'{"rate": {"destination": {"country": "US"}}}'


class TestShopifyHmac:

    def test_compute_matches_reference(self):
        expected = base64.b64encode(hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()).decode()
        assert compute_shopify_hmac(BODY, SECRET) == expected

    def test_valid_signature(self):
        assert verify_shopify_hmac(BODY, compute_shopify_hmac(BODY, SECRET), SECRET)

    def test_surrounding_whitespace_tolerated(self):
        assert verify_shopify_hmac(BODY, f" {compute_shopify_hmac(BODY, SECRET)}\n", SECRET)

    def test_wrong_secret(self):
        assert not verify_shopify_hmac(BODY, compute_shopify_hmac(BODY, "other"), SECRET)

    def test_tampered_body(self):
        signature = compute_shopify_hmac(BODY, SECRET)
        assert not verify_shopify_hmac(BODY + b" ", signature, SECRET)

    def test_missing_signature(self):
        assert not verify_shopify_hmac(BODY, None, SECRET)
        assert not verify_shopify_hmac(BODY, "", SECRET)

    def test_not_base64(self):
        assert not verify_shopify_hmac(BODY, "not base64!!", SECRET)
