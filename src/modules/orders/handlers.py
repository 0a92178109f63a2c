"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderCreated,
    PaymentCaptured,
    PaymentFailed,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            order_number=event.payload.get("order_number"),
            total_amount=event.payload.get("total_amount"),
        )


class OrderConfirmedHandler(IEventHandler[OrderConfirmed]):
    def handle(self, event: OrderConfirmed) -> None:
        logger.info(
            "order.event.confirmed",
            order_id=str(event.aggregate_id),
            order_number=event.payload.get("order_number"),
        )


class PaymentCapturedHandler(IEventHandler[PaymentCaptured]):
    def handle(self, event: PaymentCaptured) -> None:
        logger.info(
            "order.event.payment_captured",
            order_id=str(event.aggregate_id),
            payment_ref=event.payload.get("gateway_payment_ref"),
        )


class PaymentFailedHandler(IEventHandler[PaymentFailed]):
    def handle(self, event: PaymentFailed) -> None:
        logger.warning(
            "order.event.payment_failed",
            order_id=str(event.aggregate_id),
            payment_ref=event.payload.get("gateway_payment_ref"),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            previous_state=event.payload.get("previous_order_state"),
        )


order_created_handler = OrderCreatedHandler()
order_confirmed_handler = OrderConfirmedHandler()
payment_captured_handler = PaymentCapturedHandler()
payment_failed_handler = PaymentFailedHandler()
order_cancelled_handler = OrderCancelledHandler()
