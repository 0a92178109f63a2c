"""Django ORM implementation of the Product repository.

Follows the Null Object convention: look-ups return ``None`` (or leave a
key out) instead of raising, and the Service Layer decides how a missing
product becomes an API error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from django.core.exceptions import ValidationError

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository


class ProductDjangoRepository(IProductRepository):
    def get_by_id(self, id: str) -> Optional[Product]:
        """Return a live product, ``None`` for unknown or malformed IDs."""
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None):
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_many(self, ids: Iterable[str]) -> Dict[str, Product]:
        try:
            products = Product.objects.alive().filter(id__in=list(ids))
            return {str(product.id): product for product in products}
        except (ValueError, ValidationError):
            return {}

    def related(self, product: Product, limit: int) -> list[Product]:
        return list(
            Product.objects.alive()
            .filter(category=product.category)
            .exclude(id=product.id)
            .order_by("?")[:limit]
        )
