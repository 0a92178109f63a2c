"""Per-owner product bookmarks."""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Favorite(BaseModel):
    owner_id = models.CharField(max_length=255, db_index=True)
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="favorited_by",
    )

    class Meta:
        db_table = "favorites"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner_id", "product"],
                name="favorites_unique_owner_product",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.owner_id} -> {self.product_id}"
