"""Catalog service layer (read-only use cases).

Supplies product identity and the current price to checkout; never
mutates the catalog.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import structlog

from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

RELATED_PRODUCTS_LIMIT = 4


class ProductService:
    """Application service for catalog reads.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def list_products(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single catalog product.

        Raises:
            ProductNotFound: if the product does not exist or was removed.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def related_products(
        self, id: str, limit: int = RELATED_PRODUCTS_LIMIT
    ) -> list[Product]:
        """Random products from the same category, excluding ``id`` itself.

        Raises:
            ProductNotFound: if the reference product does not exist.
        """
        product = self.get_product(id)
        related = self._repo.related(product, limit)
        logger.info(
            "product.related_listed",
            product_id=str(product.id),
            category=product.category,
            count=len(related),
        )
        return related

    @staticmethod
    def price_snapshot(product: Product) -> Tuple[str, Decimal]:
        """``(unit_kind, unit_price)`` read from the product's pricing variant."""
        pricing = product.pricing
        return pricing.kind, pricing.unit_price
