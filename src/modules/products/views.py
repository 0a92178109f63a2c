"""Catalog API views.

Public, read-only endpoints over ``ProductService``.  Domain exceptions
are translated into HTTP status codes here.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.products.exceptions import ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService


class ProductViewSet(ListModelMixin, GenericViewSet):
    """GET /products/, /products/{pk}/ and /products/related/{pk}/."""

    permission_classes = [AllowAny]
    filterset_class = ProductFilter
    search_fields = ["name", "brand", "description"]
    ordering_fields = ["name", "unit_price", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.alive()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_queryset(self):
        return self._service.list_products()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk or "")
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(product).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"related/(?P<product_id>[^/.]+)",
    )
    def related(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/products/related/{product_id}/"""
        try:
            products = self._service.related_products(product_id or "")
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(products, many=True).data)
