"""Payment API views.

``create-payment`` is owner-scoped like every order route.  The webhook
is called by the gateway: it has no authentication or throttling, and it
reads the raw body because the signature covers the exact bytes sent.
"""

from __future__ import annotations

from typing import Mapping

import structlog
from django.conf import settings
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.addresses.exceptions import AddressNotFound
from modules.core.authentication import resolve_owner_id
from modules.core.exceptions import invalid_input_response
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import checkout_from_request
from modules.orders.exceptions import (
    InvalidOrderInput,
    InvalidTransition,
    OrderNotFound,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.views import build_order_service
from modules.payments.exceptions import (
    GatewayUnavailable,
    InvalidSignature,
    InvalidWebhookPayload,
)
from modules.payments.gateway import get_payment_gateway
from modules.payments.services import PaymentService
from modules.products.exceptions import ProductNotFound

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "X-Signature"


def build_payment_service() -> PaymentService:
    conf = settings.PAYMENT_GATEWAY
    return PaymentService(
        order_repository=OrderDjangoRepository(),
        order_service=build_order_service(),
        gateway=get_payment_gateway(),
        webhook_secret=conf["WEBHOOK_SECRET"],
        currency=conf["CURRENCY"],
    )


class CreatePaymentView(APIView):
    """POST /api/v1/orders/create-payment/

    The body is either ``{"order_id": ...}`` to (re)open the session of an
    existing order, or a checkout payload that first places a gateway
    order.  On ``503`` the response carries ``order_id`` so the client
    can retry without placing a second order.
    """

    throttle_scope = "checkout"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._order_service = build_order_service()
        self._payment_service = build_payment_service()

    def post(self, request: Request) -> Response:
        owner_id = resolve_owner_id(request.user)
        data = request.data if isinstance(request.data, Mapping) else {}

        order_id = data.get("order_id")
        if not order_id:
            try:
                dto = checkout_from_request(
                    data,
                    idempotency_key=request.headers.get("Idempotency-Key"),
                    payment_method=PaymentMethod.GATEWAY,
                )
            except PydanticValidationError as exc:
                return invalid_input_response(exc)
            try:
                order = self._order_service.create_order(owner_id, dto)
            except ProductNotFound as exc:
                return Response(
                    {"detail": str(exc)},
                    status=status.HTTP_404_NOT_FOUND,
                )
            except AddressNotFound:
                return Response(
                    {"detail": "Address not found."},
                    status=status.HTTP_404_NOT_FOUND,
                )
            except InvalidOrderInput as exc:
                return Response(
                    {"detail": str(exc)},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            order_id = order.id

        try:
            session = self._payment_service.open_session(owner_id, str(order_id))
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidTransition as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except GatewayUnavailable as exc:
            return Response(
                {"detail": str(exc), "order_id": str(order_id)},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(session.model_dump(mode="json"))


class PaymentWebhookView(APIView):
    """POST /api/v1/orders/webhook/"""

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._payment_service = build_payment_service()

    def post(self, request: Request) -> Response:
        # The signature covers these exact bytes; never read request.data first.
        raw_body = request.body
        signature = request.headers.get(SIGNATURE_HEADER)

        try:
            order = self._payment_service.verify_and_apply(raw_body, signature)
        except InvalidSignature:
            return Response(
                {"detail": "Invalid signature."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except InvalidWebhookPayload as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidTransition as exc:
            logger.warning("payment.webhook_transition_refused", detail=str(exc))
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if order is None:
            return Response({"status": "ignored"})
        return Response(
            {
                "status": "ok",
                "order_id": str(order.id),
                "order_state": order.order_state,
                "payment_state": order.payment_state,
            }
        )
