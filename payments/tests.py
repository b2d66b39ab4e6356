import hashlib
import hmac
from unittest.mock import patch

import requests
from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from .integrations import razorpay
from .integrations.razorpay import RazorpayError
from . import utils


class SignatureTests(SimpleTestCase):
    def test_payment_signature_is_hmac_of_order_pipe_payment(self):
        expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        self.assertEqual(utils.payment_signature("order_1", "pay_1", "secret"), expected)

    @override_settings(RAZORPAY_KEY_SECRET="secret")
    def test_verify_payment_signature(self):
        good = utils.payment_signature("order_1", "pay_1", "secret")
        self.assertTrue(utils.verify_payment_signature("order_1", "pay_1", good))
        self.assertFalse(utils.verify_payment_signature("order_1", "pay_2", good))
        self.assertFalse(utils.verify_payment_signature("order_1", "pay_1", ""))
        self.assertFalse(utils.verify_payment_signature("order_1", "pay_1", "non-ascii ✓"))

    @override_settings(RAZORPAY_KEY_SECRET="")
    def test_missing_secret_raises(self):
        with self.assertLogs("payments.utils", level="ERROR"):
            with self.assertRaises(ImproperlyConfigured):
                utils.verify_payment_signature("order_1", "pay_1", "sig")

    def test_webhook_signature_over_raw_bytes(self):
        body = b'{"event":"payment.captured"}'
        sig = hmac.new(b"whsec", body, hashlib.sha256).hexdigest()
        self.assertTrue(utils.verify_webhook_signature(body, sig, "whsec"))
        self.assertFalse(utils.verify_webhook_signature(body + b" ", sig, "whsec"))
        self.assertFalse(utils.verify_webhook_signature(body, None, "whsec"))


class FakeResponse:
    def __init__(self, status_code, data=None, text=""):
        self.status_code = status_code
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


@override_settings(
    RAZORPAY_BASE_URL="https://api.razorpay.test/",
    RAZORPAY_KEY_ID="rzp_test_key",
    RAZORPAY_KEY_SECRET="rzp_secret",
    RAZORPAY_TIMEOUT=5,
)
class RazorpayClientTests(SimpleTestCase):
    def test_create_order_posts_auto_capture_order(self):
        order = {"id": "order_1", "amount": 50000, "currency": "INR"}
        with patch("payments.integrations.razorpay.requests.post", return_value=FakeResponse(200, order)) as post:
            result = razorpay.create_order(amount_paise=50000, currency="INR", receipt="donation_1", notes={"a": "b"})

        self.assertEqual(result, order)
        post.assert_called_once()
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://api.razorpay.test/v1/orders")
        self.assertEqual(kwargs["json"], {
            "amount": 50000,
            "currency": "INR",
            "receipt": "donation_1",
            "payment_capture": 1,
            "notes": {"a": "b"},
        })
        self.assertEqual((kwargs["auth"].username, kwargs["auth"].password), ("rzp_test_key", "rzp_secret"))
        self.assertEqual(kwargs["timeout"], 5)

    def test_non_2xx_raises_with_hint(self):
        resp = FakeResponse(401, {"error": {"code": "BAD_REQUEST_ERROR"}})
        with patch("payments.integrations.razorpay.requests.post", return_value=resp):
            with self.assertLogs("payments.integrations.razorpay", level="WARNING"):
                with self.assertRaises(RazorpayError) as cm:
                    razorpay.create_order(amount_paise=100, currency="INR", receipt="r")
        self.assertIn("RAZORPAY_KEY_ID", str(cm.exception))
        self.assertIn("BAD_REQUEST_ERROR", str(cm.exception))

    def test_non_json_error_body(self):
        with patch("payments.integrations.razorpay.requests.get", return_value=FakeResponse(502, None, "bad gateway")):
            with self.assertLogs("payments.integrations.razorpay", level="WARNING"):
                with self.assertRaises(RazorpayError) as cm:
                    razorpay.fetch_order("order_1")
        self.assertIn("bad gateway", str(cm.exception))

    def test_transport_error_raises(self):
        with patch("payments.integrations.razorpay.requests.post", side_effect=requests.ConnectionError("down")):
            with self.assertRaises(RazorpayError) as cm:
                razorpay.create_order(amount_paise=100, currency="INR", receipt="r")
        self.assertIn("Gateway request failed", str(cm.exception))

    @override_settings(RAZORPAY_KEY_SECRET="")
    def test_missing_credentials_raise_before_request(self):
        with patch("payments.integrations.razorpay.requests.post") as post:
            with self.assertRaises(RazorpayError):
                razorpay.create_order(amount_paise=100, currency="INR", receipt="r")
        post.assert_not_called()

    def test_fetch_order_payments_returns_items(self):
        data = {"entity": "collection", "count": 1, "items": [{"id": "pay_1", "status": "captured"}]}
        with patch("payments.integrations.razorpay.requests.get", return_value=FakeResponse(200, data)) as get:
            items = razorpay.fetch_order_payments("order_1")
        self.assertEqual(items, [{"id": "pay_1", "status": "captured"}])
        self.assertEqual(get.call_args.args[0], "https://api.razorpay.test/v1/orders/order_1/payments")
