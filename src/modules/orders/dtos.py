"""Order DTOs for the Service Layer.

Pydantic v2, immutable.  ``CreateOrderDTO`` is the checkout payload shared
by ``POST /orders/`` and ``POST /orders/create-payment/``.  Any client-sent
total or price is ignored: only product ids and quantities are read.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from modules.addresses.dtos import ShippingAddressDTO
from modules.orders.constants import PaymentMethod


class OrderLineDTO(BaseModel):
    """One cart line: kilograms for weight products, pieces otherwise."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: Decimal = Field(gt=0, max_digits=10, decimal_places=3)


class CreateOrderDTO(BaseModel):
    """Checkout request.

    Exactly one of ``address_id`` (an address from the owner's book) and
    ``shipping_address`` (inline) must be given.
    """

    model_config = ConfigDict(frozen=True)

    items: List[OrderLineDTO] = Field(min_length=1)
    payment_method: PaymentMethod
    address_id: Optional[UUID] = None
    shipping_address: Optional[ShippingAddressDTO] = None
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=255)

    @model_validator(mode="after")
    def exactly_one_address_source(self) -> CreateOrderDTO:
        if (self.address_id is None) == (self.shipping_address is None):
            raise ValueError(
                "Provide either 'address_id' or 'shipping_address', not both."
            )
        return self

    @model_validator(mode="after")
    def products_are_unique(self) -> CreateOrderDTO:
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Each product may appear only once per order.")
        return self


def checkout_from_request(
    data: Any,
    idempotency_key: Optional[str] = None,
    payment_method: Optional[str] = None,
) -> CreateOrderDTO:
    """Build a ``CreateOrderDTO`` from a parsed request body.

    The ``Idempotency-Key`` header, when sent, wins over a body field;
    ``payment_method`` pins the method for endpoints that imply one.
    Raises ``pydantic.ValidationError`` on bad input.
    """
    payload: Dict[str, Any] = dict(data) if isinstance(data, Mapping) else {}
    if idempotency_key:
        payload["idempotency_key"] = idempotency_key
    if payment_method:
        payload["payment_method"] = payment_method
    return CreateOrderDTO.model_validate(payload)
