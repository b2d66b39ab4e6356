"""Signature helpers for Razorpay callbacks and webhooks."""

import hashlib
import hmac
import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Signature Razorpay Checkout hands back to the browser: HMAC-SHA256 of
    ``order_id|payment_id`` keyed with the API key secret, hex encoded."""
    return _hmac_hex(secret, f"{order_id}|{payment_id}".encode())


def webhook_signature(raw_body: bytes, secret: str) -> str:
    return _hmac_hex(secret, raw_body)


def verify_payment_signature(order_id: str, payment_id: str, signature: str) -> bool:
    """
    Recompute the checkout signature and compare it with the one the client
    submitted.

    If ``settings.RAZORPAY_KEY_SECRET`` is missing, the function raises
    :class:`ImproperlyConfigured` and logs an error before computing the HMAC.
    """
    secret = settings.RAZORPAY_KEY_SECRET
    if not secret:
        logger.error("RAZORPAY_KEY_SECRET missing in settings")
        raise ImproperlyConfigured("RAZORPAY_KEY_SECRET setting is required to verify payments")

    expected = payment_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode(), (signature or "").encode())


def verify_webhook_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    # Must run over the exact bytes received; re-serialised JSON will not match.
    expected = webhook_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode(), (signature or "").encode())
