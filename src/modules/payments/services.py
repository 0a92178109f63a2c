"""Payment service layer (Use Cases).

``open_session`` binds an order to a hosted-checkout session; the binding
is written with a compare-and-set on ``gateway_session_id IS NULL`` so
concurrent retries all end up with the same session.  ``verify_and_apply``
authenticates a webhook body and hands the event to the order state
machine, which makes redelivered events no-ops.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from modules.orders.constants import OrderState, PaymentMethod, PaymentState
from modules.orders.exceptions import InvalidTransition
from modules.payments.dtos import PaymentSessionDTO
from modules.payments.exceptions import InvalidSignature, InvalidWebhookPayload
from modules.payments.signatures import verify_signature

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from modules.payments.gateway import PaymentGateway

logger = structlog.get_logger(__name__)

CAPTURED_EVENT = "payment.captured"
FAILED_EVENT = "payment.failed"

PAYABLE_PAYMENT_STATES = frozenset({PaymentState.PENDING, PaymentState.FAILED})


class PaymentService:
    """Application service for the gateway payment flow.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        order_service: OrderService,
        gateway: PaymentGateway,
        webhook_secret: str,
        currency: str,
    ) -> None:
        self._order_repo = order_repository
        self._order_service = order_service
        self._gateway = gateway
        self._webhook_secret = webhook_secret
        self._currency = currency

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def open_session(self, owner_id: str, order_id: str) -> PaymentSessionDTO:
        """Return the order's gateway session, creating it on first call.

        Safe to retry: an order never gets more than one session.

        Raises:
            OrderNotFound: missing or not owned.
            InvalidTransition: not an unpaid, pending gateway order.
            GatewayUnavailable: the remote call failed; the order is
                untouched and the call can be repeated.
        """
        order = self._order_service.get_order(owner_id, order_id)
        log = logger.bind(order_id=str(order.id), order_number=order.order_number)

        if (
            order.payment_method != PaymentMethod.GATEWAY
            or order.order_state != OrderState.PENDING
            or order.payment_state not in PAYABLE_PAYMENT_STATES
        ):
            log.warning(
                "payment.session_not_allowed",
                payment_method=order.payment_method,
                order_state=order.order_state,
                payment_state=order.payment_state,
            )
            raise InvalidTransition(
                f"Order {order.order_number} cannot be paid online in state "
                f"{order.order_state}/{order.payment_state}."
            )

        if order.gateway_session_id:
            log.info("payment.session_reused", session_id=order.gateway_session_id)
            return self._session_for(order, order.gateway_session_id)

        session = self._gateway.create_session(
            amount=order.amount_minor_units,
            currency=self._currency,
            receipt=order.order_number,
            notes={"order_id": str(order.id)},
        )
        session_id = session.session_id
        if not self._order_repo.set_gateway_session(str(order.id), session_id):
            current = self._order_repo.get_by_id(str(order.id))
            session_id = current.gateway_session_id
            log.info(
                "payment.session_race_lost",
                discarded_session_id=session.session_id,
                session_id=session_id,
            )
        else:
            log.info("payment.session_opened", session_id=session_id)
        return self._session_for(order, session_id)

    def _session_for(self, order: Order, session_id: str) -> PaymentSessionDTO:
        return PaymentSessionDTO(
            order_id=order.id,
            session_id=session_id,
            amount=order.amount_minor_units,
            currency=self._currency,
            key_id=self._gateway.key_id,
        )

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    def verify_and_apply(
        self, raw_body: bytes, signature: Optional[str]
    ) -> Optional[Order]:
        """Authenticate a webhook and apply the payment event it carries.

        Returns the order for handled events and ``None`` for events that
        are acknowledged but ignored.

        Raises:
            InvalidSignature: missing or wrong ``X-Signature``.
            InvalidWebhookPayload: signed body is not a usable event.
            OrderNotFound: no order is bound to the event's session.
            InvalidTransition: the order can no longer take the event.
        """
        if not self._webhook_secret:
            logger.error("payment.webhook_secret_missing")
        if not verify_signature(raw_body, signature, self._webhook_secret):
            logger.warning(
                "payment.webhook_rejected",
                reason="missing_signature" if not signature else "mismatch",
                body_size=len(raw_body),
            )
            raise InvalidSignature("Webhook signature verification failed.")

        try:
            body = json.loads(raw_body)
        except ValueError as exc:
            raise InvalidWebhookPayload("Webhook body is not valid JSON.") from exc
        if not isinstance(body, dict):
            raise InvalidWebhookPayload("Webhook body must be a JSON object.")

        event = body.get("event")
        if event not in (CAPTURED_EVENT, FAILED_EVENT):
            logger.info("payment.webhook_ignored", webhook_event=event)
            return None

        entity = _dig(body, "payload", "payment", "entity")
        session_id = entity.get("order_id")
        if not session_id or not isinstance(session_id, str):
            raise InvalidWebhookPayload("Webhook payment has no order_id.")
        payment_ref = str(entity.get("id") or "")

        logger.info(
            "payment.webhook_accepted",
            webhook_event=event,
            session_id=session_id,
            payment_ref=payment_ref,
        )
        if event == CAPTURED_EVENT:
            return self._order_service.capture_payment(session_id, payment_ref)
        return self._order_service.fail_payment(session_id, payment_ref)


def _dig(data: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Follow nested object keys; any missing level yields ``{}``."""
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return {}
        current = current.get(key)
    return current if isinstance(current, dict) else {}
