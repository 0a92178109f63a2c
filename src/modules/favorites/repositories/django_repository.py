"""Django ORM implementation of the Favorite repository."""

from __future__ import annotations

import structlog
from django.core.exceptions import ValidationError

from modules.favorites.models import Favorite
from modules.favorites.repositories.interfaces import IFavoriteRepository
from modules.products.models import Product

logger = structlog.get_logger(__name__)


class FavoriteDjangoRepository(IFavoriteRepository):
    def list_for_owner(self, owner_id: str) -> list[Favorite]:
        """Newest first; bookmarks of soft-deleted products are skipped."""
        return list(
            Favorite.objects.select_related("product")
            .filter(owner_id=owner_id, product__deleted_at__isnull=True)
            .order_by("-created_at", "-id")
        )

    def exists(self, owner_id: str, product_id: str) -> bool:
        try:
            return Favorite.objects.filter(
                owner_id=owner_id, product_id=product_id
            ).exists()
        except (ValueError, ValidationError):
            return False

    def create(self, owner_id: str, product: Product) -> Favorite:
        favorite = Favorite.objects.create(owner_id=owner_id, product=product)
        logger.info(
            "favorite.created",
            favorite_id=str(favorite.id),
            product_id=str(product.id),
        )
        return favorite

    def delete_for_product(self, owner_id: str, product_id: str) -> int:
        try:
            deleted, _ = Favorite.objects.filter(
                owner_id=owner_id, product_id=product_id
            ).delete()
        except (ValueError, ValidationError):
            return 0
        return deleted
