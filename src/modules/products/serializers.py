"""Product DRF serializers (read-only catalog output)."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Catalog product with its pricing variant.

    ``pricing`` is the tagged variant, e.g.
    ``{"kind": "weight", "price_per_kg": "129.90"}``.
    """

    pricing = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "category",
            "brand",
            "image_url",
            "pricing_kind",
            "unit_price",
            "pricing",
            "stock",
            "is_featured",
            "created_at",
        ]
        read_only_fields = fields

    def get_pricing(self, obj: Product) -> dict:
        return obj.pricing.model_dump(mode="json")
