"""Unit tests for the tagged pricing variants."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.products.pricing import (
    PiecePricing,
    WeightPricing,
    parse_pricing,
    pricing_for,
)

pytestmark = pytest.mark.unit


class TestPricingFor:
    def test_weight_variant(self):
        pricing = pricing_for("weight", Decimal("129.90"))
        assert isinstance(pricing, WeightPricing)
        assert pricing.price_per_kg == Decimal("129.90")
        assert pricing.unit_price == Decimal("129.90")

    def test_piece_variant(self):
        pricing = pricing_for("piece", Decimal("199.00"))
        assert isinstance(pricing, PiecePricing)
        assert pricing.price_per_unit == Decimal("199.00")
        assert pricing.unit_price == Decimal("199.00")

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown pricing kind"):
            pricing_for("litre", Decimal("1.00"))

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-5.00")])
    def test_non_positive_price_rejected(self, price):
        with pytest.raises(ValidationError):
            pricing_for("weight", price)


class TestParsePricing:
    def test_discriminated_by_kind(self):
        pricing = parse_pricing({"kind": "piece", "price_per_unit": "45.50"})
        assert isinstance(pricing, PiecePricing)
        assert pricing.unit_price == Decimal("45.50")

    def test_wrong_field_for_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_pricing({"kind": "weight", "price_per_unit": "45.50"})

    def test_missing_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_pricing({"price_per_kg": "45.50"})

    def test_dump_carries_tag(self):
        dumped = WeightPricing(price_per_kg=Decimal("80.00")).model_dump(mode="json")
        assert dumped == {"kind": "weight", "price_per_kg": "80.00"}
