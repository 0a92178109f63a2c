"""Payment URL configuration (mounted under /orders/)."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import CreatePaymentView, PaymentWebhookView

urlpatterns = [
    path(
        "orders/create-payment/",
        CreatePaymentView.as_view(),
        name="order-create-payment",
    ),
    path("orders/webhook/", PaymentWebhookView.as_view(), name="order-webhook"),
]
