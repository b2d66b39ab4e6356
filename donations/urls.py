from django.urls import path

from . import views, webhook

app_name = "donations"
urlpatterns = [
    path("api/donations/create-order", views.create_order_view, name="create_order"),
    path("api/donations/verify", views.verify_view, name="verify"),

    # webhook lives here
    path("api/razorpay/webhook", webhook.razorpay_webhook, name="razorpay_webhook"),
]
