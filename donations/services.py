import json
import logging
import time

from django.conf import settings
from django.utils import timezone

from payments.integrations.razorpay import create_order, public_key_id
from payments.utils import verify_payment_signature, verify_webhook_signature
from sammilan.errors import NotFoundError, SignatureMismatchError, ValidationError
from .forms import DonationOrderForm
from .models import Donation

logger = logging.getLogger(__name__)

CAPTURED_EVENT = "payment.captured"
FAILED_EVENT = "payment.failed"


def _receipt_reference() -> str:
    return f"donation_{int(time.time() * 1000)}"


def create_donation_order(data: dict) -> dict:
    """Create a gateway order and a PENDING donation for it.

    The donation row is written only after the gateway call returns, so a
    gateway failure never leaves an orphaned record behind.
    """
    form = DonationOrderForm(data)
    if not form.is_valid():
        raise ValidationError(form.first_error())

    amount = form.cleaned_data["amount"]
    donor_name = form.cleaned_data["donorName"]
    donor_email = form.cleaned_data["donorEmail"]
    donor_phone = form.cleaned_data["donorPhone"]

    order = create_order(
        amount_paise=amount * 100,
        currency=settings.DONATION_CURRENCY,
        receipt=_receipt_reference(),
        notes={"donorName": donor_name, "donorEmail": donor_email, "donorPhone": donor_phone},
    )

    currency = order.get("currency") or settings.DONATION_CURRENCY
    Donation.objects.create(
        order_id=order["id"],
        amount=amount,
        currency=currency,
        donor_name=donor_name,
        donor_email=donor_email,
        donor_phone=donor_phone,
        status=Donation.PENDING,
    )
    logger.info("Created order %s for %s %s", order["id"], currency, amount)

    return {
        "orderId": order["id"],
        "amount": order.get("amount", amount * 100),
        "currency": currency,
        "keyId": public_key_id(),
    }


def verify_payment(*, order_id: str, payment_id: str, signature: str) -> dict:
    """Check a checkout confirmation submitted by the donor's browser.

    A bad signature downgrades the donation to FAILED and keeps the submitted
    payment id and signature for investigation. The write is unconditional:
    whichever of this path and the webhook lands last decides the status.
    """
    if not order_id or not payment_id or not signature:
        raise ValidationError("Invalid payment data")

    donation = Donation.objects.filter(order_id=order_id).first()
    if donation is None:
        raise NotFoundError("Donation not found")

    valid = verify_payment_signature(order_id, payment_id, signature)

    donation.payment_id = payment_id
    donation.signature = signature
    if not valid:
        donation.status = Donation.FAILED
        donation.save(update_fields=["status", "payment_id", "signature", "updated_at"])
        logger.warning("Signature mismatch on verify for order=%s payment=%s", order_id, payment_id)
        raise SignatureMismatchError()

    donation.status = Donation.SUCCESS
    donation.save(update_fields=["status", "payment_id", "signature", "updated_at"])

    return {
        "success": True,
        "payment": {
            "paymentId": donation.payment_id,
            "orderId": donation.order_id,
            "amount": donation.amount,
            "receiptNo": donation.receipt_no,
            "createdAt": donation.created_at.isoformat(),
        },
        "donor": {
            "name": donation.donor_name,
            "email": donation.donor_email,
            "phone": donation.donor_phone,
        },
    }


def mark_order(order_id: str, status: str, payment_id: str | None = None) -> int:
    """Bulk-update every donation for ``order_id``; returns rows touched.

    Replays converge on the same end state, and an unknown order id simply
    touches nothing.
    """
    values = {"status": status, "updated_at": timezone.now()}
    if payment_id:
        values["payment_id"] = payment_id
    return Donation.objects.filter(order_id=order_id).update(**values)


def apply_webhook(raw_body: bytes, signature: str | None) -> str:
    """Verify and apply a gateway webhook delivery; returns the event type.

    The body is parsed only after the signature over the raw bytes checks
    out. Event types other than captured/failed are acknowledged untouched.
    """
    secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not signature or not secret:
        raise ValidationError("Missing signature")

    if not verify_webhook_signature(raw_body, signature, secret):
        logger.warning("Invalid Razorpay webhook signature")
        raise SignatureMismatchError("Invalid signature")

    event = json.loads(raw_body.decode("utf-8"))
    event_type = event.get("event") or ""

    if event_type in (CAPTURED_EVENT, FAILED_EVENT):
        payment = event["payload"]["payment"]["entity"]
        order_id = payment.get("order_id")
        payment_id = payment.get("id")
        status = Donation.SUCCESS if event_type == CAPTURED_EVENT else Donation.FAILED
        if order_id:
            updated = mark_order(order_id, status, payment_id)
            logger.info("Webhook %s order=%s payment=%s rows=%s", event_type, order_id, payment_id, updated)
    else:
        logger.info("Ignoring webhook event %r", event_type)

    return event_type
