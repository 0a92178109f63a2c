"""Order, OrderItem and OrderTransition models.

Rules implemented:
- Orders are never deleted; cancellation is a state.
- ``order_number`` is a human-readable identifier generated on first save
  (``ORD-YYYYMMDD-XXXXXX``).  The UUIDv7 ``id`` is used for API look-ups.
- ``shipping_address`` is a JSON snapshot; editing or deleting the address
  afterwards does not touch the order.
- OrderItem snapshots product name and unit price at creation time and
  derives ``subtotal`` from them.
- ``idempotency_key`` is unique per owner.
- State changes never go through ``save()``: the service applies them as
  conditional updates and appends an ``OrderTransition`` row for each.
"""

from __future__ import annotations

import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    VALID_TRANSITIONS,
    OrderState,
    PaymentMethod,
    PaymentState,
)
from modules.products.models import PricingKind
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    owner_id = models.CharField(max_length=255, db_index=True)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    shipping_address = models.JSONField(default=dict)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    payment_state = models.CharField(
        max_length=20,
        choices=PaymentState.choices,
        default=PaymentState.PENDING,
    )
    order_state = models.CharField(
        max_length=20,
        choices=OrderState.choices,
        default=OrderState.PENDING,
    )
    gateway_session_id = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        default=None,
    )
    gateway_payment_ref = models.CharField(max_length=100, blank=True, default="")
    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        default=None,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["owner_id", "-created_at"],
                name="orders_owner_created_idx",
            ),
            models.Index(fields=["order_state"], name="orders_state_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["owner_id", "idempotency_key"],
                name="orders_unique_owner_idempotency_key",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gt=0),
                name="orders_total_amount_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    def can_transition_to(self, new_state: str) -> bool:
        allowed = VALID_TRANSITIONS.get(self.payment_method, {})
        return new_state in allowed.get(self.order_state, set())

    @property
    def amount_minor_units(self) -> int:
        """Total in the currency's minor unit (paise for INR)."""
        minor = (self.total_amount * 100).to_integral_value(rounding=ROUND_HALF_UP)
        return int(minor)

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.order_state}/{self.payment_state})"


class OrderItem(BaseModel):
    """Immutable line item.

    ``quantity`` is kilograms for weight-priced products and whole pieces
    for piece-priced ones.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    unit_kind = models.CharField(max_length=10, choices=PricingKind.choices)
    quantity = models.DecimalField(max_digits=10, decimal_places=3)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="order_items_quantity_positive",
            ),
        ]

    @staticmethod
    def compute_subtotal(quantity: Decimal, unit_price: Decimal) -> Decimal:
        return (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.compute_subtotal(
            Decimal(self.quantity), Decimal(self.unit_price)
        )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.subtotal})"


class OrderTransition(BaseModel):
    """Append-only audit trail: one row per applied state change.

    The creation row has no ``old_*`` states.  ``actor`` is the owner id,
    ``"gateway"`` for webhook-driven changes or ``"system"``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="transitions",
    )
    old_order_state = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderState.choices,
        null=True,
        blank=True,
    )
    new_order_state = models.CharField(max_length=20, choices=OrderState.choices)
    old_payment_state = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=PaymentState.choices,
        null=True,
        blank=True,
    )
    new_payment_state = models.CharField(max_length=20, choices=PaymentState.choices)
    trigger = models.CharField(max_length=30)
    actor = models.CharField(max_length=255)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_transitions"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="order_transitions_order_idx",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"{self.order_id}: {self.old_order_state}/{self.old_payment_state}"
            f" -> {self.new_order_state}/{self.new_payment_state} ({self.trigger})"
        )
