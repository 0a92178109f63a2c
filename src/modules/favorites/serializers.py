"""Favorites DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.favorites.models import Favorite


class FavoriteProductSerializer(serializers.Serializer):
    """Input for POST and DELETE on /favorites/."""

    product_id = serializers.UUIDField()


class FavoriteSerializer(serializers.ModelSerializer):
    """A bookmark flattened with the product fields a product card needs."""

    product_id = serializers.UUIDField(source="product.id", read_only=True)
    name = serializers.CharField(source="product.name", read_only=True)
    image_url = serializers.CharField(source="product.image_url", read_only=True)
    pricing_kind = serializers.CharField(source="product.pricing_kind", read_only=True)
    price = serializers.SerializerMethodField()

    class Meta:
        model = Favorite
        fields = [
            "id",
            "product_id",
            "name",
            "image_url",
            "pricing_kind",
            "price",
            "created_at",
        ]
        read_only_fields = fields

    def get_price(self, obj: Favorite) -> str:
        return str(obj.product.pricing.unit_price)
