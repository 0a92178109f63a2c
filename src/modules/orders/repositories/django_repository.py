"""Django ORM implementation of the Order repository.

State changes are conditional ``UPDATE`` statements (``compare_and_set``)
rather than ``save()`` calls, so two requests racing on the same order
cannot both apply a transition.  Domain events collected on the aggregate
are written to the transactional outbox by ``flush_events``.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderItem, OrderTransition
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

EVENT_TOPICS = {
    "PaymentCaptured": "payments",
    "PaymentFailed": "payments",
}


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, owner_id: str, data: Dict[str, Any]) -> Order:
        lines = [
            (
                item,
                OrderItem.compute_subtotal(item["quantity"], item["unit_price"]),
            )
            for item in data["items"]
        ]
        total = sum((subtotal for _, subtotal in lines), Decimal("0.00"))

        order = Order(
            owner_id=owner_id,
            total_amount=total,
            shipping_address=data["shipping_address"],
            payment_method=data["payment_method"],
            idempotency_key=data.get("idempotency_key"),
        )
        order.save()

        for item, _ in lines:
            product = item["product"]
            OrderItem(
                order=order,
                product=product,
                product_name=product.name,
                unit_kind=item["unit_kind"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
            ).save()

        logger.bind(order_id=str(order.id), item_count=len(lines)).info(
            "order.persisted", total_amount=str(total)
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _with_relations(self) -> QuerySet[Order]:
        return Order.objects.prefetch_related("items", "transitions")

    def get_by_id(self, id: str) -> Optional[Order]:
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_owner(self, owner_id: str, id: str) -> Optional[Order]:
        """Return the owned order, or ``None`` (foreign, unknown, malformed)."""
        try:
            return self._with_relations().filter(owner_id=owner_id, id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_for_owner(self, owner_id: str) -> QuerySet[Order]:
        return (
            Order.objects.filter(owner_id=owner_id)
            .prefetch_related("items")
            .order_by("-created_at", "-id")
        )

    def latest_for_owner(self, owner_id: str) -> Optional[Order]:
        return (
            self._with_relations()
            .filter(owner_id=owner_id)
            .order_by("-created_at", "-id")
            .first()
        )

    def get_by_idempotency_key(self, owner_id: str, key: str) -> Optional[Order]:
        return (
            self._with_relations()
            .filter(owner_id=owner_id, idempotency_key=key)
            .first()
        )

    def find_by_gateway_session(self, session_id: str) -> Optional[Order]:
        return Order.objects.filter(gateway_session_id=session_id).first()

    # ------------------------------------------------------------------
    # Conditional writes
    # ------------------------------------------------------------------

    def compare_and_set(
        self,
        id: str,
        expected: Mapping[str, Any],
        changes: Mapping[str, Any],
    ) -> bool:
        updated = Order.objects.filter(id=id, **expected).update(
            **changes, updated_at=timezone.now()
        )
        logger.debug(
            "order.compare_and_set",
            order_id=str(id),
            applied=bool(updated),
        )
        return updated == 1

    def set_gateway_session(self, id: str, session_id: str) -> bool:
        return self.compare_and_set(
            id,
            expected={"gateway_session_id__isnull": True},
            changes={"gateway_session_id": session_id},
        )

    # ------------------------------------------------------------------
    # Audit trail / outbox
    # ------------------------------------------------------------------

    def add_transition(
        self,
        order_id: str,
        *,
        old_order_state: Optional[str],
        new_order_state: str,
        old_payment_state: Optional[str],
        new_payment_state: str,
        trigger: str,
        actor: str,
        notes: str = "",
    ) -> OrderTransition:
        transition = OrderTransition.objects.create(
            order_id=order_id,
            old_order_state=old_order_state,
            new_order_state=new_order_state,
            old_payment_state=old_payment_state,
            new_payment_state=new_payment_state,
            trigger=trigger,
            actor=actor,
            notes=notes,
        )
        logger.info(
            "order.transition_recorded",
            order_id=str(order_id),
            trigger=trigger,
            order_state=new_order_state,
            payment_state=new_payment_state,
        )
        return transition

    @transaction.atomic
    def flush_events(self, order: Order) -> int:
        events = order.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event.payload),
                topic=EVENT_TOPICS.get(event.event_name, "orders"),
            )
        order.clear_domain_events()
        if events:
            logger.info(
                "order.events_flushed",
                order_id=str(order.id),
                event_count=len(events),
            )
        return len(events)


def _serialize_event_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    normalized = _normalize_for_json(payload)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
