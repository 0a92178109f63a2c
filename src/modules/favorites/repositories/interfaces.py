"""Favorite repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IOwnedRepository

if TYPE_CHECKING:
    from modules.favorites.models import Favorite
    from modules.products.models import Product


class IFavoriteRepository(IOwnedRepository["Favorite"]):
    @abstractmethod
    def exists(self, owner_id: str, product_id: str) -> bool:
        """Whether the owner already bookmarked ``product_id``."""

    @abstractmethod
    def create(self, owner_id: str, product: Product) -> Favorite:
        """Insert a bookmark; raises ``IntegrityError`` on a duplicate."""

    @abstractmethod
    def delete_for_product(self, owner_id: str, product_id: str) -> int:
        """Remove the owner's bookmark for ``product_id``; returns rows deleted."""
