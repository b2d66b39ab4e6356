import json
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.urls import reverse

from payments.integrations.razorpay import RazorpayError
from payments.utils import payment_signature
from .models import Donation, receipt_number

KEY_SECRET = "test-key-secret"


def _gateway_order(order_id="order_TEST123", amount=50000):
    return {"id": order_id, "entity": "order", "amount": amount, "currency": "INR", "status": "created"}


@override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET)
class CreateOrderTests(TestCase):
    def _post(self, payload):
        return self.client.post(
            reverse("donations:create_order"),
            data=json.dumps(payload),
            content_type="application/json",
        )

    def _payload(self, **overrides):
        payload = {
            "amount": 500,
            "donorName": "Radha Devi",
            "donorEmail": "radha@example.com",
            "donorPhone": "9876543210",
        }
        payload.update(overrides)
        return payload

    def test_valid_request_creates_pending_donation(self):
        with patch("donations.services.create_order", return_value=_gateway_order()) as create:
            resp = self._post(self._payload())

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {
            "orderId": "order_TEST123",
            "amount": 50000,
            "currency": "INR",
            "keyId": "rzp_test_key",
        })

        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["amount_paise"], 50000)
        self.assertEqual(kwargs["currency"], "INR")
        self.assertTrue(kwargs["receipt"].startswith("donation_"))
        self.assertEqual(kwargs["notes"]["donorEmail"], "radha@example.com")

        donation = Donation.objects.get(order_id="order_TEST123")
        self.assertEqual(donation.status, Donation.PENDING)
        self.assertEqual(donation.amount, 500)
        self.assertEqual(donation.currency, "INR")
        self.assertEqual(donation.donor_name, "Radha Devi")
        self.assertIsNone(donation.payment_id)

    def test_amount_is_rounded_to_whole_rupees(self):
        with patch("donations.services.create_order", return_value=_gateway_order(amount=50000)) as create:
            resp = self._post(self._payload(amount=499.6))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(create.call_args.kwargs["amount_paise"], 50000)
        self.assertEqual(Donation.objects.get().amount, 500)

    def test_amount_out_of_range_rejected(self):
        with patch("donations.services.create_order") as create:
            low = self._post(self._payload(amount=5))
            high = self._post(self._payload(amount=1000001))

        self.assertEqual(low.status_code, 400)
        self.assertEqual(high.status_code, 400)
        self.assertIn("Amount out of allowed range", low.json()["error"])
        create.assert_not_called()
        self.assertFalse(Donation.objects.exists())

    def test_huge_amount_rejected_as_out_of_range(self):
        with patch("donations.services.create_order") as create:
            huge = self._post(self._payload(amount=1e30))
            just_over = self._post(self._payload(amount=1000000.5))

        self.assertEqual(huge.status_code, 400)
        self.assertIn("Amount out of allowed range", huge.json()["error"])
        self.assertEqual(just_over.status_code, 400)
        create.assert_not_called()
        self.assertFalse(Donation.objects.exists())

    def test_non_numeric_amount_rejected(self):
        with patch("donations.services.create_order") as create:
            resp = self._post(self._payload(amount="lots"))
        self.assertEqual(resp.status_code, 400)
        self.assertIn("amount", resp.json()["error"])
        create.assert_not_called()

    def test_missing_donor_field_rejected(self):
        with patch("donations.services.create_order") as create:
            resp = self._post(self._payload(donorPhone="   "))
        self.assertEqual(resp.status_code, 400)
        self.assertIn("donorPhone", resp.json()["error"])
        create.assert_not_called()

    def test_invalid_json_rejected(self):
        resp = self.client.post(reverse("donations:create_order"), data="{nope", content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_gateway_failure_leaves_no_record(self):
        with patch("donations.services.create_order", side_effect=RazorpayError("boom")):
            with self.assertLogs("donations.views", level="ERROR"):
                resp = self._post(self._payload())

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Unable to create order"})
        self.assertFalse(Donation.objects.exists())

    def test_get_not_allowed(self):
        resp = self.client.get(reverse("donations:create_order"))
        self.assertEqual(resp.status_code, 405)


@override_settings(RAZORPAY_KEY_SECRET=KEY_SECRET)
class VerifyPaymentTests(TestCase):
    def setUp(self):
        self.donation = Donation.objects.create(
            order_id="order_ABC",
            amount=500,
            donor_name="Radha Devi",
            donor_email="radha@example.com",
            donor_phone="9876543210",
        )

    def _post(self, payload):
        return self.client.post(
            reverse("donations:verify"),
            data=json.dumps(payload),
            content_type="application/json",
        )

    def test_valid_signature_marks_success(self):
        sig = payment_signature("order_ABC", "pay_XYZ", KEY_SECRET)
        resp = self._post({
            "razorpay_order_id": "order_ABC",
            "razorpay_payment_id": "pay_XYZ",
            "razorpay_signature": sig,
        })

        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["payment"]["paymentId"], "pay_XYZ")
        self.assertEqual(data["payment"]["orderId"], "order_ABC")
        self.assertEqual(data["payment"]["amount"], 500)
        self.assertEqual(data["payment"]["receiptNo"], f"SRTK{self.donation.pk:06d}")
        self.assertEqual(data["donor"], {"name": "Radha Devi", "email": "radha@example.com", "phone": "9876543210"})

        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.SUCCESS)
        self.assertEqual(self.donation.payment_id, "pay_XYZ")
        self.assertEqual(self.donation.signature, sig)

    def test_bad_signature_marks_failed_and_keeps_evidence(self):
        payload = {
            "razorpay_order_id": "order_ABC",
            "razorpay_payment_id": "pay_XYZ",
            "razorpay_signature": "forged",
        }
        with self.assertLogs("donations.services", level="WARNING"):
            resp = self._post(payload)

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Signature verification failed"})
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.FAILED)
        self.assertEqual(self.donation.payment_id, "pay_XYZ")
        self.assertEqual(self.donation.signature, "forged")

        # replaying the same bad request changes nothing
        with self.assertLogs("donations.services", level="WARNING"):
            again = self._post(payload)
        self.assertEqual(again.status_code, 400)
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.FAILED)

    def test_missing_fields_rejected(self):
        resp = self._post({"razorpay_order_id": "order_ABC", "razorpay_payment_id": "pay_XYZ"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid payment data"})
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)

    def test_unknown_order_returns_404(self):
        resp = self._post({
            "razorpay_order_id": "order_NOPE",
            "razorpay_payment_id": "pay_XYZ",
            "razorpay_signature": payment_signature("order_NOPE", "pay_XYZ", KEY_SECRET),
        })
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "Donation not found"})

    @override_settings(RAZORPAY_KEY_SECRET="")
    def test_missing_secret_is_server_error(self):
        with self.assertLogs("donations.views", level="ERROR"):
            resp = self._post({
                "razorpay_order_id": "order_ABC",
                "razorpay_payment_id": "pay_XYZ",
                "razorpay_signature": "anything",
            })
        self.assertEqual(resp.status_code, 500)
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)


class CreateThenVerifyScenarioTests(TestCase):
    @override_settings(RAZORPAY_KEY_ID="rzp_test_key", RAZORPAY_KEY_SECRET=KEY_SECRET)
    def test_end_to_end(self):
        with patch("donations.services.create_order", return_value=_gateway_order("order_E2E")):
            created = self.client.post(
                reverse("donations:create_order"),
                data=json.dumps({
                    "amount": 500,
                    "donorName": "Gopal",
                    "donorEmail": "gopal@example.com",
                    "donorPhone": "9000000000",
                }),
                content_type="application/json",
            ).json()

        order_id = created["orderId"]
        donation = Donation.objects.get(order_id=order_id)
        self.assertEqual((donation.status, donation.amount, donation.currency), (Donation.PENDING, 500, "INR"))

        resp = self.client.post(
            reverse("donations:verify"),
            data=json.dumps({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": "pay_E2E",
                "razorpay_signature": payment_signature(order_id, "pay_E2E", KEY_SECRET),
            }),
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 200)
        receipt = resp.json()["payment"]["receiptNo"]
        self.assertRegex(receipt, r"^SRTK\d{6}$")

        donation.refresh_from_db()
        self.assertEqual(donation.status, Donation.SUCCESS)


class ReceiptNumberTests(TestCase):
    def test_zero_padded_from_id(self):
        self.assertEqual(receipt_number(42), "SRTK000042")
        self.assertEqual(receipt_number(1234567), "SRTK1234567")
