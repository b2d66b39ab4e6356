from django.contrib import admin
from .models import Donation


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ("id", "order_id", "status", "amount", "currency", "donor_name", "donor_email", "created_at")
    search_fields = ("order_id", "payment_id", "donor_name", "donor_email", "donor_phone")
    list_filter = ("status", "currency", "created_at")
    readonly_fields = ("order_id", "payment_id", "signature", "created_at", "updated_at")
