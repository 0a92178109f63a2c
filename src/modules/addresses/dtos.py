"""Address DTOs for the Service Layer.

Pydantic v2, immutable.  ``ShippingAddressDTO`` is also the inline
shipping address accepted at checkout.
"""

from __future__ import annotations

from django.conf import settings
from pydantic import BaseModel, ConfigDict, field_validator

from modules.addresses.models import AddressKind


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: AddressKind = AddressKind.HOME
    street: str
    city: str
    region: str
    postal_code: str

    @field_validator("street", "city", "region")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be blank.")
        return v

    @field_validator("postal_code")
    @classmethod
    def postal_code_must_be_numeric(cls, v: str) -> str:
        length = settings.ADDRESS_POSTAL_CODE_LENGTH
        if len(v) != length or not (v.isascii() and v.isdigit()):
            raise ValueError(f"Postal code must be exactly {length} digits.")
        return v

    def as_snapshot(self) -> dict:
        return self.model_dump(mode="json")


class CreateAddressDTO(ShippingAddressDTO):
    """Input for ``AddressService.add_address``.

    ``is_default`` is a request; the first address of an owner is always
    made default regardless of it.
    """

    is_default: bool = False
