"""
Checkout signature verification.

The checkout widget signs ``"{order_id}|{payment_id}"`` with HMAC-SHA256 using
the merchant key secret and returns the hex digest as the payment signature.
"""

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


def constant_time_compare(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_checkout_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    expected = compute_hmac_sha256(secret, f"{order_id}|{payment_id}".encode("utf-8"))
    if not constant_time_compare(expected, (signature or "").strip().lower()):
        logger.warning(f"⚠️ Checkout signature mismatch for payment {payment_id}")
        return False
    return True
