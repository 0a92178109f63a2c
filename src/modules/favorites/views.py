"""Favorites API view.

All three verbs share the collection URL; DELETE takes the product id in
the body, mirroring POST.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.authentication import resolve_owner_id
from modules.favorites.exceptions import FavoriteAlreadyExists, FavoriteNotFound
from modules.favorites.repositories.django_repository import FavoriteDjangoRepository
from modules.favorites.serializers import FavoriteProductSerializer, FavoriteSerializer
from modules.favorites.services import FavoriteService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


class FavoriteView(APIView):
    """GET, POST and DELETE /api/v1/favorites/"""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = FavoriteService(
            favorite_repository=FavoriteDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def get(self, request: Request) -> Response:
        owner_id = resolve_owner_id(request.user)
        favorites = self._service.list_favorites(owner_id)
        return Response(FavoriteSerializer(favorites, many=True).data)

    def post(self, request: Request) -> Response:
        owner_id = resolve_owner_id(request.user)
        serializer = FavoriteProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product_id = str(serializer.validated_data["product_id"])

        try:
            favorite = self._service.add_favorite(owner_id, product_id)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except FavoriteAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(
            FavoriteSerializer(favorite).data,
            status=status.HTTP_201_CREATED,
        )

    def delete(self, request: Request) -> Response:
        owner_id = resolve_owner_id(request.user)
        serializer = FavoriteProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product_id = str(serializer.validated_data["product_id"])

        try:
            self._service.remove_favorite(owner_id, product_id)
        except FavoriteNotFound:
            return Response(
                {"detail": "Favorite not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
