import json
import logging

import requests
from django.conf import settings
from requests import RequestException
from requests.auth import HTTPBasicAuth

from sammilan.errors import UpstreamError

logger = logging.getLogger(__name__)

COMMON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class RazorpayError(UpstreamError):
    default_message = "Payment gateway error"


def public_key_id() -> str:
    return settings.RAZORPAY_KEY_ID


def _auth() -> HTTPBasicAuth:
    key_id = settings.RAZORPAY_KEY_ID
    key_secret = settings.RAZORPAY_KEY_SECRET
    if not key_id:
        raise RazorpayError("Missing RAZORPAY_KEY_ID")
    if not key_secret:
        raise RazorpayError("Missing RAZORPAY_KEY_SECRET")
    return HTTPBasicAuth(key_id, key_secret)


def _url(path: str) -> str:
    return settings.RAZORPAY_BASE_URL.rstrip("/") + path


def _hint(status_code: int) -> str:
    if status_code == 401:
        return "Check RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET."
    if status_code == 400:
        return "Bad request: amount/currency/receipt."
    if status_code in (404, 500, 502, 503):
        return f"Gateway error {status_code}."
    return f"HTTP {status_code}"


def _handle(resp, what: str) -> dict:
    try:
        data = resp.json()
    except ValueError:
        data = {"raw": resp.text}
    if 200 <= resp.status_code < 300:
        return data
    logger.warning("Razorpay %s returned status=%s", what.lower(), resp.status_code)
    raise RazorpayError(f"{what} failed: {_hint(resp.status_code)} Response: {json.dumps(data)[:800]}")


def create_order(*, amount_paise: int, currency: str, receipt: str, notes: dict | None = None) -> dict:
    """Create a gateway order for ``amount_paise`` minor units.

    Orders are created with ``payment_capture`` on so a successful payment is
    captured without a second API call. Returns the gateway order entity
    (``id``, ``amount``, ``currency``, ``receipt``, ``status``).
    """
    payload = {
        "amount": int(amount_paise),
        "currency": currency,
        "receipt": receipt,
        "payment_capture": 1,
        "notes": notes or {},
    }
    try:
        resp = requests.post(
            _url("/v1/orders"),
            json=payload,
            headers=COMMON_HEADERS,
            auth=_auth(),
            timeout=settings.RAZORPAY_TIMEOUT,
        )
    except RequestException as e:
        raise RazorpayError(f"Gateway request failed: {e}")
    return _handle(resp, "Create order")


def fetch_order(order_id: str) -> dict:
    try:
        resp = requests.get(
            _url(f"/v1/orders/{order_id}"),
            headers=COMMON_HEADERS,
            auth=_auth(),
            timeout=settings.RAZORPAY_TIMEOUT,
        )
    except RequestException as e:
        raise RazorpayError(f"Gateway request failed: {e}")
    return _handle(resp, "Fetch order")


def fetch_order_payments(order_id: str) -> list:
    try:
        resp = requests.get(
            _url(f"/v1/orders/{order_id}/payments"),
            headers=COMMON_HEADERS,
            auth=_auth(),
            timeout=settings.RAZORPAY_TIMEOUT,
        )
    except RequestException as e:
        raise RazorpayError(f"Gateway request failed: {e}")
    return _handle(resp, "Fetch order payments").get("items") or []
