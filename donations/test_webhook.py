import json

from django.test import TestCase, override_settings
from django.urls import reverse

from payments.utils import webhook_signature
from .models import Donation

WEBHOOK_SECRET = "test-webhook-secret"


def _event(event_type, order_id="order_WH1", payment_id="pay_WH1"):
    return {
        "entity": "event",
        "event": event_type,
        "payload": {
            "payment": {
                "entity": {"id": payment_id, "order_id": order_id, "status": "captured", "amount": 50000},
            },
        },
    }


@override_settings(RAZORPAY_WEBHOOK_SECRET=WEBHOOK_SECRET)
class RazorpayWebhookTests(TestCase):
    def setUp(self):
        self.donation = Donation.objects.create(
            order_id="order_WH1",
            amount=500,
            donor_name="Alice",
            donor_email="alice@example.com",
            donor_phone="9999999999",
        )

    def _post(self, body: bytes, signature=None):
        headers = {}
        if signature is not None:
            headers["HTTP_X_RAZORPAY_SIGNATURE"] = signature
        return self.client.post(
            reverse("donations:razorpay_webhook"),
            data=body,
            content_type="application/json",
            **headers,
        )

    def _signed(self, payload: dict):
        body = json.dumps(payload).encode()
        return self._post(body, webhook_signature(body, WEBHOOK_SECRET))

    def test_captured_marks_success(self):
        resp = self._signed(_event("payment.captured"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"received": True})
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.SUCCESS)
        self.assertEqual(self.donation.payment_id, "pay_WH1")

    def test_captured_replay_is_idempotent(self):
        self._signed(_event("payment.captured"))
        self.donation.refresh_from_db()
        first = (self.donation.status, self.donation.payment_id)

        resp = self._signed(_event("payment.captured"))
        self.assertEqual(resp.status_code, 200)
        self.donation.refresh_from_db()
        self.assertEqual((self.donation.status, self.donation.payment_id), first)
        self.assertEqual(Donation.objects.count(), 1)

    def test_failed_marks_failed(self):
        resp = self._signed(_event("payment.failed", payment_id="pay_BAD"))
        self.assertEqual(resp.status_code, 200)
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.FAILED)
        self.assertEqual(self.donation.payment_id, "pay_BAD")

    def test_failed_for_unknown_order_is_acknowledged(self):
        resp = self._signed(_event("payment.failed", order_id="order_MISSING"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"received": True})
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)

    def test_unknown_event_is_acknowledged(self):
        resp = self._signed({"event": "refund.processed", "payload": {}})
        self.assertEqual(resp.status_code, 200)
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)

    def test_invalid_signature_changes_nothing(self):
        body = json.dumps(_event("payment.captured")).encode()
        with self.assertLogs("donations.services", level="WARNING") as cm:
            resp = self._post(body, "deadbeef")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Invalid Razorpay webhook signature", cm.output[0])
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)
        self.assertIsNone(self.donation.payment_id)

    def test_signature_covers_raw_bytes(self):
        body = json.dumps(_event("payment.captured")).encode()
        sig = webhook_signature(body, WEBHOOK_SECRET)
        reformatted = json.dumps(_event("payment.captured"), indent=2).encode()
        with self.assertLogs("donations.services", level="WARNING"):
            resp = self._post(reformatted, sig)
        self.assertEqual(resp.status_code, 400)

    def test_missing_signature_header(self):
        resp = self._post(json.dumps(_event("payment.captured")).encode())
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Missing signature"})

    @override_settings(RAZORPAY_WEBHOOK_SECRET="")
    def test_missing_webhook_secret(self):
        body = json.dumps(_event("payment.captured")).encode()
        resp = self._post(body, webhook_signature(body, WEBHOOK_SECRET))
        self.assertEqual(resp.status_code, 400)
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)

    def test_malformed_json_after_valid_signature(self):
        body = b"{not json"
        with self.assertLogs("donations.webhook", level="ERROR"):
            resp = self._post(body, webhook_signature(body, WEBHOOK_SECRET))
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Webhook error"})

    def test_webhook_overrides_earlier_verify_result(self):
        self.donation.status = Donation.FAILED
        self.donation.save()
        self._signed(_event("payment.captured"))
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.SUCCESS)
