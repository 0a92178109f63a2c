"""Favorites service layer (Use Cases)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import IntegrityError, transaction

from modules.favorites.exceptions import FavoriteAlreadyExists, FavoriteNotFound
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.favorites.models import Favorite
    from modules.favorites.repositories.interfaces import IFavoriteRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class FavoriteService:
    def __init__(
        self,
        favorite_repository: IFavoriteRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._favorite_repo = favorite_repository
        self._product_repo = product_repository

    def list_favorites(self, owner_id: str) -> list[Favorite]:
        return self._favorite_repo.list_for_owner(owner_id)

    def add_favorite(self, owner_id: str, product_id: str) -> Favorite:
        """Bookmark a catalog product.

        Raises:
            ProductNotFound: unknown or removed product.
            FavoriteAlreadyExists: already bookmarked, including a
                concurrent duplicate caught by the unique constraint.
        """
        product = self._product_repo.get_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Product {product_id} not found.")

        if self._favorite_repo.exists(owner_id, product_id):
            raise FavoriteAlreadyExists(f"Product {product_id} is already a favorite.")

        try:
            with transaction.atomic():
                return self._favorite_repo.create(owner_id, product)
        except IntegrityError as exc:
            logger.info("favorite.duplicate_race", product_id=product_id)
            raise FavoriteAlreadyExists(
                f"Product {product_id} is already a favorite."
            ) from exc

    def remove_favorite(self, owner_id: str, product_id: str) -> None:
        """Raises ``FavoriteNotFound`` if there is nothing to remove."""
        if not self._favorite_repo.delete_for_product(owner_id, product_id):
            raise FavoriteNotFound(f"Product {product_id} is not a favorite.")
        logger.info("favorite.removed", product_id=product_id)
