"""Unit tests for ProductService and the catalog repository.

Covers:
- Look-ups hide soft-deleted products and tolerate malformed ids.
- Related products: same category, never the product itself, bounded.
- Price snapshots read from the pricing variant.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.products.exceptions import ProductNotFound
from modules.products.models import PricingKind, Product, ProductCategory
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import RELATED_PRODUCTS_LIMIT, ProductService

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def service():
    return ProductService(repository=ProductDjangoRepository())


def _product(name, category=ProductCategory.RICE, **overrides) -> Product:
    data = {
        "name": name,
        "category": category,
        "pricing_kind": PricingKind.WEIGHT,
        "unit_price": Decimal("100.00"),
    }
    data.update(overrides)
    return Product.objects.create(**data)


# ---------------------------------------------------------------------------
# Look-ups
# ---------------------------------------------------------------------------


class TestGetProduct:
    def test_returns_live_product(self, service, rice):
        assert service.get_product(str(rice.id)) == rice

    def test_soft_deleted_product_not_found(self, service, rice):
        rice.delete()

        with pytest.raises(ProductNotFound):
            service.get_product(str(rice.id))
        assert Product.objects.filter(id=rice.id).exists()

    def test_malformed_id_not_found(self, service):
        with pytest.raises(ProductNotFound):
            service.get_product("definitely-not-a-uuid")

    def test_list_excludes_soft_deleted(self, service, rice, oil):
        oil.delete()

        assert list(service.list_products()) == [rice]

    def test_list_applies_filters(self, service, rice, oil):
        products = service.list_products({"category": ProductCategory.OIL})

        assert list(products) == [oil]


class TestGetMany:
    def test_unknown_ids_are_absent(self, rice):
        repo = ProductDjangoRepository()
        found = repo.get_many([str(rice.id), "0190a1b2-0000-7000-8000-000000000000"])

        assert list(found) == [str(rice.id)]

    def test_malformed_ids_yield_empty(self, rice):
        assert ProductDjangoRepository().get_many(["nope"]) == {}


# ---------------------------------------------------------------------------
# Related products
# ---------------------------------------------------------------------------


class TestRelatedProducts:
    def test_same_category_excluding_self(self, service):
        anchor = _product("Anchor Rice")
        siblings = {_product(f"Rice {i}").id for i in range(3)}
        _product("Chana Dal", category=ProductCategory.PULSES)

        related = service.related_products(str(anchor.id))

        assert {product.id for product in related} == siblings

    def test_bounded_by_limit(self, service):
        anchor = _product("Anchor Rice")
        for i in range(RELATED_PRODUCTS_LIMIT + 3):
            _product(f"Rice {i}")

        related = service.related_products(str(anchor.id))

        assert len(related) == RELATED_PRODUCTS_LIMIT
        assert anchor.id not in {product.id for product in related}

    def test_excludes_soft_deleted(self, service):
        anchor = _product("Anchor Rice")
        gone = _product("Old Rice")
        gone.delete()

        assert service.related_products(str(anchor.id)) == []

    def test_unknown_product_raises(self, service):
        with pytest.raises(ProductNotFound):
            service.related_products("0190a1b2-0000-7000-8000-000000000000")


# ---------------------------------------------------------------------------
# Price snapshot
# ---------------------------------------------------------------------------


class TestPriceSnapshot:
    def test_weight_product(self, rice):
        assert ProductService.price_snapshot(rice) == ("weight", Decimal("129.90"))

    def test_piece_product(self, oil):
        assert ProductService.price_snapshot(oil) == ("piece", Decimal("199.00"))
