"""Order service layer (Use Cases).

Covers the order ledger (checkout, look-ups) and the order state machine.
Every transition is a compare-and-set on the states the service last
read: the conditional ``UPDATE`` either changes exactly one row or none,
and only an applied change appends an ``OrderTransition`` row and an
outbox event, all in the caller's transaction.

Business rules enforced:
- Prices, product names and the shipping address are snapshotted at
  checkout; the total is always recomputed server-side.
- Piece-priced products are ordered in whole pieces.
- Cash-on-delivery orders are confirmed in the checkout transaction.
- Cancellation is allowed only from ``pending`` or ``confirmed``.
- Repeated capture/failure notifications are no-ops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

import structlog
from django.db import IntegrityError, transaction

from modules.addresses.exceptions import AddressNotFound
from modules.orders.constants import (
    GATEWAY_ACTOR,
    SYSTEM_ACTOR,
    OrderState,
    PaymentMethod,
    PaymentState,
    TransitionTrigger,
)
from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderCreated,
    PaymentCaptured,
    PaymentFailed,
)
from modules.orders.exceptions import (
    InvalidOrderInput,
    InvalidTransition,
    OrderNotFound,
)
from modules.orders.models import OrderItem
from modules.products.exceptions import ProductNotFound
from modules.products.models import PricingKind
from modules.products.services import ProductService

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.addresses.repositories.interfaces import IAddressRepository
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

# A lost compare-and-set is re-evaluated against fresh state this many
# times before the caller is told to retry.
CAS_MAX_ATTEMPTS = 3

CAPTURABLE_PAYMENT_STATES = frozenset({PaymentState.PENDING, PaymentState.FAILED})


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        address_repository: IAddressRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._address_repo = address_repository

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create_order(self, owner_id: str, dto: CreateOrderDTO) -> Order:
        """Place an order from a cart.

        A repeated ``idempotency_key`` returns the owner's existing order,
        including when two requests with the same key race.

        Raises:
            ProductNotFound: a product is unknown or no longer sold.
            AddressNotFound: ``address_id`` is missing or not owned.
            InvalidOrderInput: fractional quantity of a piece product, or a
                quantity whose line subtotal rounds to zero.
        """
        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(
                owner_id, dto.idempotency_key
            )
            if existing:
                logger.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        try:
            return self._create_order_atomic(owner_id, dto)
        except IntegrityError:
            if not dto.idempotency_key:
                raise
            existing = self._order_repo.get_by_idempotency_key(
                owner_id, dto.idempotency_key
            )
            if existing is None:
                raise
            logger.info(
                "order.idempotency_race",
                order_id=str(existing.id),
                key=dto.idempotency_key,
            )
            return existing

    @transaction.atomic
    def _create_order_atomic(self, owner_id: str, dto: CreateOrderDTO) -> Order:
        log = logger.bind(owner_id=owner_id, payment_method=dto.payment_method)
        log.info("order.creation_started", item_count=len(dto.items))

        shipping_address = self._resolve_shipping_address(owner_id, dto)
        lines = self._price_lines(dto)

        order = self._order_repo.create(
            owner_id,
            {
                "items": lines,
                "shipping_address": shipping_address,
                "payment_method": dto.payment_method,
                "idempotency_key": dto.idempotency_key,
            },
        )
        self._order_repo.add_transition(
            str(order.id),
            old_order_state=None,
            new_order_state=order.order_state,
            old_payment_state=None,
            new_payment_state=order.payment_state,
            trigger=TransitionTrigger.CREATED,
            actor=owner_id,
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "payment_method": order.payment_method,
                    "order_state": order.order_state,
                    "payment_state": order.payment_state,
                    "total_amount": str(order.total_amount),
                },
            )
        )
        self._order_repo.flush_events(order)

        if dto.payment_method == PaymentMethod.CASH_ON_DELIVERY:
            self.confirm(str(order.id), actor=owner_id)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return self._reload(order)

    def _resolve_shipping_address(
        self, owner_id: str, dto: CreateOrderDTO
    ) -> Dict[str, Any]:
        if dto.address_id is not None:
            address = self._address_repo.get_for_owner(owner_id, str(dto.address_id))
            if not address:
                raise AddressNotFound(f"Address {dto.address_id} not found.")
            return address.as_snapshot()
        return dto.shipping_address.as_snapshot()

    def _price_lines(self, dto: CreateOrderDTO) -> List[Dict[str, Any]]:
        products = self._product_repo.get_many(
            str(item.product_id) for item in dto.items
        )
        lines = []
        for item in dto.items:
            product = products.get(str(item.product_id))
            if product is None:
                raise ProductNotFound(f"Product {item.product_id} not found.")

            unit_kind, unit_price = ProductService.price_snapshot(product)
            if (
                unit_kind == PricingKind.PIECE
                and item.quantity != item.quantity.to_integral_value()
            ):
                raise InvalidOrderInput(
                    f"'{product.name}' is sold per piece; "
                    f"quantity {item.quantity} is not a whole number."
                )
            if OrderItem.compute_subtotal(item.quantity, unit_price) <= 0:
                raise InvalidOrderInput(
                    f"Quantity {item.quantity} of '{product.name}' is too small "
                    "to price."
                )
            lines.append(
                {
                    "product": product,
                    "quantity": item.quantity,
                    "unit_kind": unit_kind,
                    "unit_price": unit_price,
                }
            )
        return lines

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @transaction.atomic
    def confirm(self, order_id: str, actor: str = SYSTEM_ACTOR) -> Order:
        """``pending -> confirmed`` for cash-on-delivery orders.

        Raises:
            OrderNotFound: unknown order.
            InvalidTransition: not a pending cash-on-delivery order.
        """
        order = self._get_unscoped(order_id)
        for _ in range(CAS_MAX_ATTEMPTS):
            if order.order_state == OrderState.CONFIRMED:
                return order
            if not order.can_transition_to(OrderState.CONFIRMED):
                raise InvalidTransition(
                    f"Cannot confirm order in state {order.order_state}."
                )
            if self._compare_and_transition(
                order,
                order_state=OrderState.CONFIRMED,
                payment_state=order.payment_state,
                trigger=TransitionTrigger.CASH_ON_DELIVERY,
                actor=actor,
                event_class=OrderConfirmed,
            ):
                return self._reload(order)
            order = self._reload(order)
        raise InvalidTransition("Order changed concurrently; retry.")

    @transaction.atomic
    def capture_payment(self, session_id: str, payment_ref: str) -> Order:
        """``(pending, payment pending|failed) -> (processing, completed)``.

        A capture that was already applied returns the order unchanged.

        Raises:
            OrderNotFound: no order is bound to ``session_id``.
            InvalidTransition: the order can no longer be paid (cancelled).
        """
        order = self._get_by_session(session_id)
        log = logger.bind(order_id=str(order.id), payment_ref=payment_ref)
        for _ in range(CAS_MAX_ATTEMPTS):
            if order.payment_state == PaymentState.COMPLETED:
                log.info("payment.capture_already_applied")
                return order
            if (
                order.payment_method != PaymentMethod.GATEWAY
                or not order.can_transition_to(OrderState.PROCESSING)
                or order.payment_state not in CAPTURABLE_PAYMENT_STATES
            ):
                log.warning(
                    "payment.capture_rejected",
                    order_state=order.order_state,
                    payment_state=order.payment_state,
                )
                raise InvalidTransition(
                    f"Cannot capture payment for order in state {order.order_state}."
                )
            if self._compare_and_transition(
                order,
                order_state=OrderState.PROCESSING,
                payment_state=PaymentState.COMPLETED,
                trigger=TransitionTrigger.PAYMENT_CAPTURED,
                actor=GATEWAY_ACTOR,
                event_class=PaymentCaptured,
                extra_changes={"gateway_payment_ref": payment_ref},
            ):
                log.info("payment.captured")
                return self._reload(order)
            order = self._reload(order)
        raise InvalidTransition("Order changed concurrently; retry.")

    @transaction.atomic
    def fail_payment(self, session_id: str, payment_ref: str) -> Order:
        """``(pending, payment pending) -> (pending, failed)``.

        The order stays ``pending`` so the owner can pay again.  A failure
        that was already recorded returns the order unchanged.

        Raises:
            OrderNotFound: no order is bound to ``session_id``.
            InvalidTransition: the payment already completed or the order
                left ``pending``.
        """
        order = self._get_by_session(session_id)
        log = logger.bind(order_id=str(order.id), payment_ref=payment_ref)
        for _ in range(CAS_MAX_ATTEMPTS):
            if order.payment_state == PaymentState.FAILED:
                log.info("payment.failure_already_applied")
                return order
            if (
                order.order_state != OrderState.PENDING
                or order.payment_state != PaymentState.PENDING
            ):
                log.warning(
                    "payment.failure_rejected",
                    order_state=order.order_state,
                    payment_state=order.payment_state,
                )
                raise InvalidTransition(
                    f"Cannot record a failed payment for order in state "
                    f"{order.order_state}/{order.payment_state}."
                )
            if self._compare_and_transition(
                order,
                order_state=OrderState.PENDING,
                payment_state=PaymentState.FAILED,
                trigger=TransitionTrigger.PAYMENT_FAILED,
                actor=GATEWAY_ACTOR,
                event_class=PaymentFailed,
                extra_changes={"gateway_payment_ref": payment_ref},
            ):
                log.info("payment.failed")
                return self._reload(order)
            order = self._reload(order)
        raise InvalidTransition("Order changed concurrently; retry.")

    @transaction.atomic
    def cancel_order(self, owner_id: str, order_id: str, notes: str = "") -> Order:
        """Cancel an owned order that has not started processing.

        Raises:
            OrderNotFound: missing or not owned.
            InvalidTransition: the order is past ``confirmed``.
        """
        order = self.get_order(owner_id, order_id)
        log = logger.bind(order_id=str(order.id))
        for _ in range(CAS_MAX_ATTEMPTS):
            if not order.can_transition_to(OrderState.CANCELLED):
                log.warning("order.cancel_not_allowed", order_state=order.order_state)
                raise InvalidTransition(
                    f"Cannot cancel order in state {order.order_state}."
                )
            if self._compare_and_transition(
                order,
                order_state=OrderState.CANCELLED,
                payment_state=order.payment_state,
                trigger=TransitionTrigger.CANCELLED,
                actor=owner_id,
                event_class=OrderCancelled,
                notes=notes or "Cancelled by owner",
            ):
                log.info("order.cancelled")
                return self._reload(order)
            order = self._reload(order)
        raise InvalidTransition("Order changed concurrently; retry.")

    def _compare_and_transition(
        self,
        order: Order,
        *,
        order_state: str,
        payment_state: str,
        trigger: str,
        actor: str,
        event_class: Type[DomainEvent],
        extra_changes: Optional[Dict[str, Any]] = None,
        notes: str = "",
    ) -> bool:
        """Move ``order`` from the states it was read in to the targets.

        Returns ``False`` without side effects if another writer changed
        the order since it was read.
        """
        extra_changes = extra_changes or {}
        applied = self._order_repo.compare_and_set(
            str(order.id),
            expected={
                "order_state": order.order_state,
                "payment_state": order.payment_state,
            },
            changes={
                "order_state": order_state,
                "payment_state": payment_state,
                **extra_changes,
            },
        )
        if not applied:
            logger.info(
                "order.compare_and_set_lost",
                order_id=str(order.id),
                trigger=trigger,
            )
            return False

        self._order_repo.add_transition(
            str(order.id),
            old_order_state=order.order_state,
            new_order_state=order_state,
            old_payment_state=order.payment_state,
            new_payment_state=payment_state,
            trigger=trigger,
            actor=actor,
            notes=notes,
        )
        order.add_domain_event(
            event_class(
                aggregate_id=order.id,
                payload={
                    "order_number": order.order_number,
                    "previous_order_state": order.order_state,
                    "previous_payment_state": order.payment_state,
                    "order_state": order_state,
                    "payment_state": payment_state,
                    "total_amount": str(order.total_amount),
                    **extra_changes,
                },
            )
        )
        self._order_repo.flush_events(order)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, owner_id: str, order_id: str) -> Order:
        """Raises ``OrderNotFound`` for missing and foreign orders alike."""
        order = self._order_repo.get_for_owner(owner_id, order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, owner_id: str) -> QuerySet[Order]:
        return self._order_repo.list_for_owner(owner_id)

    def latest_order(self, owner_id: str) -> Order:
        """Raises ``OrderNotFound`` if the owner has never ordered."""
        order = self._order_repo.latest_for_owner(owner_id)
        if not order:
            raise OrderNotFound("No orders yet.")
        return order

    def find_by_gateway_session(self, session_id: str) -> Optional[Order]:
        return self._order_repo.find_by_gateway_session(session_id)

    def _get_unscoped(self, order_id: str) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _get_by_session(self, session_id: str) -> Order:
        order = self._order_repo.find_by_gateway_session(session_id)
        if not order:
            logger.warning("payment.unknown_session", session_id=session_id)
            raise OrderNotFound(f"No order for gateway session {session_id}.")
        return order

    def _reload(self, order: Order) -> Order:
        fresh = self._order_repo.get_by_id(str(order.id))
        if fresh is None:
            raise OrderNotFound(f"Order {order.id} not found.")
        return fresh
