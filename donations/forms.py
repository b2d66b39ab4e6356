from decimal import Decimal, ROUND_HALF_UP

from django import forms
from django.conf import settings


class DonationOrderForm(forms.Form):
    """Validate a create-order request coming from the donate section."""

    amount = forms.DecimalField()
    donorName = forms.CharField(max_length=128)
    donorEmail = forms.CharField(max_length=254)
    donorPhone = forms.CharField(max_length=20)

    def clean_amount(self):
        amount = self.cleaned_data["amount"]
        if amount < 1:
            raise forms.ValidationError("Invalid amount")
        # bounds apply to the whole-rupee amount; check the upper one before
        # quantizing so huge values cannot overflow the decimal context
        if amount >= settings.DONATION_MAX_AMOUNT + Decimal("0.5"):
            raise forms.ValidationError("Amount out of allowed range")
        rounded = int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        if rounded < settings.DONATION_MIN_AMOUNT or rounded > settings.DONATION_MAX_AMOUNT:
            raise forms.ValidationError("Amount out of allowed range")
        return rounded

    def first_error(self) -> str:
        for field, errors in self.errors.items():
            if field == "__all__":
                return errors[0]
            return f"{field}: {errors[0]}"
        return "Invalid request"
