from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from donations.models import Donation
from donations.services import mark_order
from payments.integrations.razorpay import RazorpayError, fetch_order, fetch_order_payments


def _captured_payment_id(payments: list) -> str | None:
    for p in payments:
        if str(p.get("status", "")).lower() == "captured":
            return p.get("id")
    return None


class Command(BaseCommand):
    help = "Reconcile PENDING donations against Razorpay by polling order status"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=100, help="Max donations to process")
        parser.add_argument("--minutes", type=int, default=120, help="Only donations created within last N minutes (0=all)")

    def handle(self, *args, **opts):
        qs = Donation.objects.filter(status=Donation.PENDING).order_by("created_at")
        if opts["minutes"] > 0:
            cutoff = timezone.now() - timedelta(minutes=opts["minutes"])
            qs = qs.filter(created_at__gte=cutoff)

        cnt = 0
        ok = 0
        for d in qs[: opts["max"]]:
            cnt += 1
            try:
                order = fetch_order(d.order_id)
                status = str(order.get("status", "")).lower()
                if status == "paid":
                    payment_id = _captured_payment_id(fetch_order_payments(d.order_id))
                    mark_order(d.order_id, Donation.SUCCESS, payment_id)
                    ok += 1
                    self.stdout.write(self.style.SUCCESS(f"Donation {d.order_id} -> SUCCESS"))
                else:
                    self.stdout.write(f"Donation {d.order_id}: status={status or 'unknown'}")
            except RazorpayError as e:
                self.stdout.write(self.style.WARNING(f"{d.order_id}: {e}"))

        self.stdout.write(self.style.SUCCESS(f"Checked {cnt}, updated {ok} donations."))
