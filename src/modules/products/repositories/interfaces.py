"""Product repository interface.

The catalog is read-only from the storefront's point of view: the
repository exposes look-ups only.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "QuerySet[Product]":
        """Return catalog products (soft-deleted excluded)."""

    @abstractmethod
    def get_many(self, ids: Iterable[str]) -> Dict[str, "Product"]:
        """Return live products keyed by ``str(id)``; unknown ids are absent."""

    @abstractmethod
    def related(self, product: "Product", limit: int) -> list["Product"]:
        """Return up to ``limit`` random products from the same category."""
