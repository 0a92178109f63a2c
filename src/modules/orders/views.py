"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions are caught and translated into HTTP status codes; the view
never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.addresses.exceptions import AddressNotFound
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.core.authentication import resolve_owner_id
from modules.core.exceptions import invalid_input_response
from modules.orders.dtos import checkout_from_request
from modules.orders.exceptions import (
    InvalidOrderInput,
    InvalidTransition,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        address_repository=AddressDjangoRepository(),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for the owner's orders.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer, always scoped to the caller.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "checkout"
        elif self.action in {"list", "retrieve", "latest"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(resolve_owner_id(self.request.user))

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header: a repeated
        key answers with the order it created the first time.
        """
        owner_id = resolve_owner_id(request.user)
        try:
            dto = checkout_from_request(
                request.data,
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except PydanticValidationError as exc:
            return invalid_input_response(exc)

        try:
            order = self._service.create_order(owner_id, dto)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
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

        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/ (paginated, newest first)"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        owner_id = resolve_owner_id(request.user)
        try:
            order = self._service.get_order(owner_id, pk or "")
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"])
    def latest(self, request: Request) -> Response:
        """GET /api/v1/orders/latest/"""
        owner_id = resolve_owner_id(request.user)
        try:
            order = self._service.latest_order(owner_id)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        owner_id = resolve_owner_id(request.user)
        notes = request.data.get("notes", "") if hasattr(request.data, "get") else ""

        try:
            order = self._service.cancel_order(owner_id, pk or "", notes=str(notes))
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
        return Response(OrderSerializer(order).data)
