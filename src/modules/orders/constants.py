"""Order domain constants.

Order state and payment state are orthogonal: ``order_state`` follows the
fulfillment lifecycle, ``payment_state`` tracks money collection.
"""

from django.db import models


class OrderState(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentState(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class PaymentMethod(models.TextChoices):
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on delivery"
    GATEWAY = "gateway", "Online payment"


class TransitionTrigger(models.TextChoices):
    CREATED = "created", "Order created"
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on delivery confirmation"
    PAYMENT_CAPTURED = "payment_captured", "Payment captured"
    PAYMENT_FAILED = "payment_failed", "Payment failed"
    CANCELLED = "cancelled", "Cancelled by owner"


# Moves out of processing are driven by fulfillment outside this service;
# they are listed so the table describes the whole lifecycle.
_FULFILLMENT_TRANSITIONS: dict[str, set[str]] = {
    OrderState.PROCESSING: {OrderState.SHIPPED},
    OrderState.SHIPPED: {OrderState.DELIVERED},
    OrderState.DELIVERED: set(),
    OrderState.CANCELLED: set(),
}

# Order-state moves allowed per payment method.  Cash-on-delivery orders
# are confirmed at checkout and enter processing when fulfillment picks
# them up; gateway orders enter processing on a captured payment.
VALID_TRANSITIONS: dict[str, dict[str, set[str]]] = {
    PaymentMethod.CASH_ON_DELIVERY: {
        OrderState.PENDING: {OrderState.CONFIRMED, OrderState.CANCELLED},
        OrderState.CONFIRMED: {OrderState.PROCESSING, OrderState.CANCELLED},
        **_FULFILLMENT_TRANSITIONS,
    },
    PaymentMethod.GATEWAY: {
        OrderState.PENDING: {OrderState.PROCESSING, OrderState.CANCELLED},
        OrderState.CONFIRMED: set(),
        **_FULFILLMENT_TRANSITIONS,
    },
}

SYSTEM_ACTOR = "system"
GATEWAY_ACTOR = "gateway"

ORDER_NUMBER_MAX_RETRIES = 5
