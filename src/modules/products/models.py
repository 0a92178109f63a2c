"""Catalog product model.

Rules implemented:
- Price must be greater than zero (application check + DB constraint).
- Pricing is a tagged variant (``pricing_kind`` + ``unit_price``); see
  ``modules.products.pricing``.
- Soft delete via ``deleted_at``: products referenced by past orders keep
  their row, they just disappear from the catalog.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel
from modules.products.pricing import PiecePricing, WeightPricing, pricing_for

logger = structlog.get_logger(__name__)


class ProductCategory(models.TextChoices):
    RICE = "rice", "Rice"
    FLOUR = "flour", "Flour"
    PULSES = "pulses", "Pulses"
    OIL = "oil", "Oil"
    ESSENTIALS = "essentials", "Essentials"


class PricingKind(models.TextChoices):
    WEIGHT = "weight", "Per kg"
    PIECE = "piece", "Per piece"


class Product(SoftDeleteModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=20, choices=ProductCategory.choices)
    brand = models.CharField(max_length=120, blank=True, default="")
    image_url = models.URLField(max_length=500, blank=True, default="")
    pricing_kind = models.CharField(
        max_length=10,
        choices=PricingKind.choices,
        default=PricingKind.WEIGHT,
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock = models.PositiveIntegerField(default=0)
    is_featured = models.BooleanField(default=False)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(unit_price__gt=0),
                name="products_unit_price_positive",
            ),
        ]

    @property
    def pricing(self) -> WeightPricing | PiecePricing:
        return pricing_for(self.pricing_kind, self.unit_price)

    @property
    def is_piece_product(self) -> bool:
        return self.pricing_kind == PricingKind.PIECE

    def clean(self) -> None:
        super().clean()
        if self.unit_price is not None and self.unit_price <= 0:
            raise ValidationError({"unit_price": "Price must be greater than zero."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                category=self.category,
                pricing_kind=self.pricing_kind,
            )

    def __str__(self) -> str:
        unit = "kg" if self.pricing_kind == PricingKind.WEIGHT else "pc"
        return f"{self.name} ({self.unit_price}/{unit})"
