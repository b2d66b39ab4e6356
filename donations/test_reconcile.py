from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase

from payments.integrations.razorpay import RazorpayError
from .models import Donation


class ReconcilePendingDonationsTests(TestCase):
    def setUp(self):
        for oid in ("order_PAID", "order_OPEN", "order_ERR"):
            Donation.objects.create(
                order_id=oid, amount=101, donor_name="D", donor_email="d@example.com", donor_phone="1",
            )

    def test_paid_orders_marked_success(self):
        def fake_fetch(order_id):
            if order_id == "order_ERR":
                raise RazorpayError("Gateway error 500.")
            return {"id": order_id, "status": "paid" if order_id == "order_PAID" else "attempted"}

        payments = [{"id": "pay_FAIL", "status": "failed"}, {"id": "pay_OK", "status": "captured"}]
        out = StringIO()
        with patch("donations.management.commands.reconcile_pending_donations.fetch_order", side_effect=fake_fetch), \
                patch("donations.management.commands.reconcile_pending_donations.fetch_order_payments",
                      return_value=payments):
            call_command("reconcile_pending_donations", "--minutes", "0", stdout=out)

        paid = Donation.objects.get(order_id="order_PAID")
        self.assertEqual(paid.status, Donation.SUCCESS)
        self.assertEqual(paid.payment_id, "pay_OK")
        self.assertEqual(Donation.objects.get(order_id="order_OPEN").status, Donation.PENDING)
        self.assertEqual(Donation.objects.get(order_id="order_ERR").status, Donation.PENDING)
        self.assertIn("Checked 3, updated 1 donations.", out.getvalue())
        self.assertIn("order_ERR: Gateway error 500.", out.getvalue())

    def test_only_pending_rows_are_polled(self):
        Donation.objects.update(status=Donation.SUCCESS)
        out = StringIO()
        with patch("donations.management.commands.reconcile_pending_donations.fetch_order") as fetch:
            call_command("reconcile_pending_donations", stdout=out)
        fetch.assert_not_called()
        self.assertIn("Checked 0, updated 0", out.getvalue())
