from django.conf import settings
from django.db import models


class Donation(models.Model):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    STATUS_CHOICES = [
        (PENDING, "PENDING"),
        (SUCCESS, "SUCCESS"),
        (FAILED, "FAILED"),
        (REFUNDED, "REFUNDED"),
    ]

    order_id = models.CharField(max_length=64, unique=True)  # gateway order id
    payment_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    signature = models.CharField(max_length=256, null=True, blank=True)

    amount = models.PositiveIntegerField()  # rupees
    currency = models.CharField(max_length=8, default="INR")

    donor_name = models.CharField(max_length=128)
    donor_email = models.EmailField()
    donor_phone = models.CharField(max_length=20)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, db_index=True, default=PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.order_id} {self.status} ₹{self.amount}"

    @property
    def receipt_no(self) -> str:
        return receipt_number(self.pk)

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "orderId": self.order_id,
            "paymentId": self.payment_id,
            "signature": self.signature,
            "amount": self.amount,
            "currency": self.currency,
            "donorName": self.donor_name,
            "donorEmail": self.donor_email,
            "donorPhone": self.donor_phone,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


def receipt_number(pk: int) -> str:
    # e.g. 42 -> SRTK000042
    return f"{settings.RECEIPT_PREFIX}{int(pk):0{settings.RECEIPT_DIGITS}d}"
