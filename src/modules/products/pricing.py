"""Tagged pricing variants for catalog products.

A product is priced either per kilogram or per piece, never both.  The
variant is rebuilt from the ``pricing_kind`` tag and the single
``unit_price`` column, so "both set" or "neither set" cannot be expressed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class WeightPricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["weight"] = "weight"
    price_per_kg: Decimal = Field(gt=0, decimal_places=2)

    @property
    def unit_price(self) -> Decimal:
        return self.price_per_kg


class PiecePricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["piece"] = "piece"
    price_per_unit: Decimal = Field(gt=0, decimal_places=2)

    @property
    def unit_price(self) -> Decimal:
        return self.price_per_unit


Pricing = Annotated[Union[WeightPricing, PiecePricing], Field(discriminator="kind")]

_pricing_adapter: TypeAdapter[Pricing] = TypeAdapter(Pricing)


def pricing_for(kind: str, unit_price: Decimal) -> Union[WeightPricing, PiecePricing]:
    """Build the pricing variant for a stored ``(kind, unit_price)`` pair."""
    if kind == "weight":
        return WeightPricing(price_per_kg=unit_price)
    if kind == "piece":
        return PiecePricing(price_per_unit=unit_price)
    raise ValueError(f"Unknown pricing kind '{kind}'.")


def parse_pricing(data: dict) -> Union[WeightPricing, PiecePricing]:
    """Validate a serialized pricing variant, e.g. ``{"kind": "piece", ...}``."""
    return _pricing_adapter.validate_python(data)
