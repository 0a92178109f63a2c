"""Integration tests for Order API endpoints.

Covers:
- Checkout via POST /api/v1/orders/ (cash on delivery).
- Idempotency-Key header.
- Order history via GET /api/v1/orders/ (paginated, filterable).
- GET /api/v1/orders/{id}/ and /api/v1/orders/latest/.
- Cancellation via POST /api/v1/orders/{id}/cancel/.
- Domain exception mapping (400, 404) and owner scoping.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.models import Order
from modules.products.models import PricingKind, Product, ProductCategory

pytestmark = pytest.mark.integration

LIST_URL = "/api/v1/orders/"
LATEST_URL = "/api/v1/orders/latest/"
UNKNOWN_ID = "0190a1b2-0000-7000-8000-000000000000"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _checkout_payload(address_payload, *lines, **overrides) -> dict:
    data = {
        "items": [
            {"product_id": str(product.id), "quantity": quantity}
            for product, quantity in lines
        ],
        "payment_method": "cash_on_delivery",
        "shipping_address": address_payload,
    }
    data.update(overrides)
    return data


def _place(client, address_payload, *lines, **extra) -> dict:
    response = client.post(
        LIST_URL,
        _checkout_payload(address_payload, *lines),
        format="json",
        **extra,
    )
    assert response.status_code == 201, response.json()
    return response.json()


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_requires_authentication(self, api_client, address_payload, rice):
        response = api_client.post(
            LIST_URL,
            _checkout_payload(address_payload, (rice, "1")),
            format="json",
        )

        assert response.status_code == 401

    def test_cash_on_delivery_checkout(self, auth_client, address_payload, rice, oil):
        data = _place(auth_client, address_payload, (rice, "2.5"), (oil, "2"))

        assert data["order_state"] == "confirmed"
        assert data["payment_state"] == "pending"
        assert data["payment_method"] == "cash_on_delivery"
        assert data["total_amount"] == "722.75"
        assert data["order_number"].startswith("ORD-")
        assert data["shipping_address"]["postal_code"] == "560001"
        items = {item["product_name"]: item for item in data["items"]}
        assert items["Basmati Rice"]["quantity"] == "2.500"
        assert items["Basmati Rice"]["subtotal"] == "324.75"
        assert items["Sunflower Oil 1L"]["unit_kind"] == "piece"
        assert [t["trigger"] for t in data["transitions"]] == [
            "created",
            "cash_on_delivery",
        ]

    def test_client_prices_are_ignored(self, auth_client, address_payload, rice):
        payload = _checkout_payload(
            address_payload, (rice, "1"), total_amount="0.01"
        )
        payload["items"][0]["unit_price"] = "0.01"

        response = auth_client.post(LIST_URL, payload, format="json")

        assert response.status_code == 201
        assert response.json()["total_amount"] == "129.90"

    def test_checkout_with_saved_address(self, auth_client, address_payload, rice):
        address = auth_client.post(
            "/api/v1/addresses/", address_payload, format="json"
        ).json()
        payload = {
            "items": [{"product_id": str(rice.id), "quantity": "1"}],
            "payment_method": "cash_on_delivery",
            "address_id": address["id"],
        }

        response = auth_client.post(LIST_URL, payload, format="json")

        assert response.status_code == 201
        assert response.json()["shipping_address"]["street"] == "12 MG Road"

    def test_foreign_address_404(
        self, auth_client, other_client, address_payload, rice
    ):
        theirs = other_client.post(
            "/api/v1/addresses/", address_payload, format="json"
        ).json()
        payload = {
            "items": [{"product_id": str(rice.id), "quantity": "1"}],
            "payment_method": "cash_on_delivery",
            "address_id": theirs["id"],
        }

        response = auth_client.post(LIST_URL, payload, format="json")

        assert response.status_code == 404
        assert not Order.objects.exists()

    def test_empty_cart_400(self, auth_client, address_payload):
        response = auth_client.post(
            LIST_URL, _checkout_payload(address_payload), format="json"
        )

        assert response.status_code == 400
        data = response.json()
        assert data["detail"] == "Invalid input."
        assert data["errors"][0]["attr"] == "items"

    def test_fractional_piece_quantity_400(self, auth_client, address_payload, oil):
        response = auth_client.post(
            LIST_URL,
            _checkout_payload(address_payload, (oil, "1.5")),
            format="json",
        )

        assert response.status_code == 400
        assert "per piece" in response.json()["detail"]
        assert not Order.objects.exists()

    @pytest.mark.parametrize("extra", [{}, {"HTTP_IDEMPOTENCY_KEY": "tiny-1"}])
    def test_quantity_priced_to_zero_400(self, auth_client, address_payload, extra):
        salt = Product.objects.create(
            name="Rock Salt",
            category=ProductCategory.RICE,
            pricing_kind=PricingKind.WEIGHT,
            unit_price=Decimal("1.00"),
        )

        response = auth_client.post(
            LIST_URL,
            _checkout_payload(address_payload, (salt, "0.001")),
            format="json",
            **extra,
        )

        assert response.status_code == 400
        assert "too small" in response.json()["detail"]
        assert not Order.objects.exists()

    def test_unknown_product_404(self, auth_client, address_payload, rice):
        payload = _checkout_payload(address_payload, (rice, "1"))
        payload["items"][0]["product_id"] = UNKNOWN_ID

        response = auth_client.post(LIST_URL, payload, format="json")

        assert response.status_code == 404

    def test_invalid_shipping_address_400(self, auth_client, address_payload, rice):
        bad_address = {**address_payload, "postal_code": "1"}

        response = auth_client.post(
            LIST_URL,
            _checkout_payload(bad_address, (rice, "1")),
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "shipping_address.postal_code"


class TestIdempotencyKey:
    def test_same_key_returns_same_order(self, auth_client, address_payload, rice):
        first = _place(
            auth_client, address_payload, (rice, "1"), HTTP_IDEMPOTENCY_KEY="abc-1"
        )
        second = _place(
            auth_client, address_payload, (rice, "1"), HTTP_IDEMPOTENCY_KEY="abc-1"
        )

        assert first["id"] == second["id"]
        assert Order.objects.count() == 1

    def test_different_keys_create_orders(self, auth_client, address_payload, rice):
        _place(auth_client, address_payload, (rice, "1"), HTTP_IDEMPOTENCY_KEY="k-1")
        _place(auth_client, address_payload, (rice, "1"), HTTP_IDEMPOTENCY_KEY="k-2")

        assert Order.objects.count() == 2


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


class TestListOrders:
    def test_paginated_and_owner_scoped(
        self, auth_client, other_client, address_payload, rice
    ):
        for _ in range(3):
            _place(auth_client, address_payload, (rice, "1"))
        _place(other_client, address_payload, (rice, "1"))

        data = auth_client.get(LIST_URL, {"page_size": 2}).json()

        assert data["count"] == 3
        assert len(data["results"]) == 2
        assert data["next"] is not None
        assert "transitions" not in data["results"][0]
        assert len(data["results"][0]["items"]) == 1

    def test_filter_by_order_state(self, auth_client, address_payload, rice):
        kept = _place(auth_client, address_payload, (rice, "1"))
        cancelled = _place(auth_client, address_payload, (rice, "2"))
        auth_client.post(f"{LIST_URL}{cancelled['id']}/cancel/", format="json")

        data = auth_client.get(LIST_URL, {"order_state": "cancelled"}).json()

        assert [order["id"] for order in data["results"]] == [cancelled["id"]]
        assert kept["id"] not in {order["id"] for order in data["results"]}

    def test_filter_by_total_range(self, auth_client, address_payload, rice):
        _place(auth_client, address_payload, (rice, "1"))
        big = _place(auth_client, address_payload, (rice, "10"))

        data = auth_client.get(LIST_URL, {"min_total": "1000"}).json()

        assert [order["id"] for order in data["results"]] == [big["id"]]


class TestRetrieveOrder:
    def test_retrieve_own_order(self, auth_client, address_payload, rice):
        placed = _place(auth_client, address_payload, (rice, "1"))

        response = auth_client.get(f"{LIST_URL}{placed['id']}/")

        assert response.status_code == 200
        assert response.json()["id"] == placed["id"]
        assert len(response.json()["transitions"]) == 2

    def test_foreign_order_404(self, auth_client, other_client, address_payload, rice):
        theirs = _place(other_client, address_payload, (rice, "1"))

        response = auth_client.get(f"{LIST_URL}{theirs['id']}/")

        assert response.status_code == 404
        assert response.json() == {"detail": "Order not found."}

    def test_malformed_id_404(self, auth_client):
        assert auth_client.get(f"{LIST_URL}not-a-uuid/").status_code == 404


class TestLatestOrder:
    def test_latest_without_orders_404(self, auth_client):
        assert auth_client.get(LATEST_URL).status_code == 404

    def test_latest_returns_newest(self, auth_client, address_payload, rice):
        _place(auth_client, address_payload, (rice, "1"))
        newest = _place(auth_client, address_payload, (rice, "2"))
        Order.objects.filter(id=newest["id"]).update(
            created_at=Order.objects.get(id=newest["id"]).created_at.replace(
                year=2100
            )
        )

        response = auth_client.get(LATEST_URL)

        assert response.status_code == 200
        assert response.json()["id"] == newest["id"]


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


class TestCancelOrder:
    def test_cancel_confirmed_order(self, auth_client, address_payload, rice):
        placed = _place(auth_client, address_payload, (rice, "1"))

        response = auth_client.post(
            f"{LIST_URL}{placed['id']}/cancel/",
            {"notes": "Ordered by mistake"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["order_state"] == "cancelled"
        assert data["transitions"][-1]["notes"] == "Ordered by mistake"

    def test_cancel_twice_400(self, auth_client, address_payload, rice):
        placed = _place(auth_client, address_payload, (rice, "1"))
        auth_client.post(f"{LIST_URL}{placed['id']}/cancel/", format="json")

        response = auth_client.post(f"{LIST_URL}{placed['id']}/cancel/", format="json")

        assert response.status_code == 400

    def test_cancel_foreign_order_404(
        self, auth_client, other_client, address_payload, rice
    ):
        theirs = _place(other_client, address_payload, (rice, "1"))

        response = auth_client.post(f"{LIST_URL}{theirs['id']}/cancel/", format="json")

        assert response.status_code == 404
        assert Order.objects.get(id=theirs["id"]).order_state == "confirmed"
