from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.products.models import PricingKind, Product, ProductCategory

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Owners
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_a():
    return User.objects.create_user(username="owner-a", password="testpass123")


@pytest.fixture()
def user_b():
    return User.objects.create_user(username="owner-b", password="testpass123")


@pytest.fixture()
def owner_a(user_a):
    return str(user_a.pk)


@pytest.fixture()
def owner_b(user_b):
    return str(user_b.pk)


@pytest.fixture()
def auth_client(user_a):
    """APIClient force-authenticated as owner A."""
    client = APIClient()
    client.force_authenticate(user=user_a)
    return client


@pytest.fixture()
def other_client(user_b):
    """APIClient force-authenticated as owner B."""
    client = APIClient()
    client.force_authenticate(user=user_b)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def rice():
    """Weight-priced product (per kg)."""
    return Product.objects.create(
        name="Basmati Rice",
        brand="India Gate",
        category=ProductCategory.RICE,
        pricing_kind=PricingKind.WEIGHT,
        unit_price=Decimal("129.90"),
        stock=50,
    )


@pytest.fixture()
def oil():
    """Piece-priced product (per bottle)."""
    return Product.objects.create(
        name="Sunflower Oil 1L",
        brand="Fortune",
        category=ProductCategory.OIL,
        pricing_kind=PricingKind.PIECE,
        unit_price=Decimal("199.00"),
        stock=30,
    )


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@pytest.fixture()
def address_payload():
    return {
        "kind": "home",
        "street": "12 MG Road",
        "city": "Bengaluru",
        "region": "Karnataka",
        "postal_code": "560001",
    }
