"""Order DRF serializers (output).

Checkout input is validated by ``CreateOrderDTO``; these serializers only
render orders.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderTransition


class OrderItemSerializer(serializers.ModelSerializer):
    """Line item with its frozen product name and unit price."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "unit_kind",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderTransitionSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderTransition
        fields = [
            "id",
            "old_order_state",
            "new_order_state",
            "old_payment_state",
            "new_payment_state",
            "trigger",
            "actor",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order with items and the transition log."""

    items = OrderItemSerializer(many=True, read_only=True)
    transitions = OrderTransitionSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "order_state",
            "payment_state",
            "payment_method",
            "total_amount",
            "shipping_address",
            "gateway_session_id",
            "items",
            "transitions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Order history row; items included, transitions omitted."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "order_state",
            "payment_state",
            "payment_method",
            "total_amount",
            "items",
            "created_at",
        ]
        read_only_fields = fields
