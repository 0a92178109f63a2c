"""Unit tests for bearer-token authentication and owner resolution.

Auth0 tokens are signed with a throwaway RSA key; the JWKS lookup is
replaced by a stub returning the matching public key.
"""

from __future__ import annotations

import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from django.contrib.auth.models import AnonymousUser
from jwt.exceptions import PyJWKClientError
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.test import APIRequestFactory

from modules.core.authentication import (
    Auth0JSONWebTokenAuthentication,
    Auth0Tenant,
    configured_tenant,
    resolve_owner_id,
)

pytestmark = pytest.mark.unit

DOMAIN = "storefront.eu.auth0.com"
ISSUER = f"https://{DOMAIN}/"
AUDIENCE = "https://api.storefront.test"

SIGNING_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
OTHER_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tenant_settings(settings):
    settings.AUTH0 = {"DOMAIN": DOMAIN, "AUDIENCE": AUDIENCE, "ALGORITHM": "RS256"}
    return settings


@pytest.fixture()
def jwks():
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = SimpleNamespace(
        key=SIGNING_KEY.public_key()
    )
    with patch("modules.core.authentication.jwks_client_for", return_value=client):
        yield client


def _token(key=SIGNING_KEY, algorithm="RS256", **overrides) -> str:
    claims = {
        "sub": "auth0|65f0c1",
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": int(time.time()) + 300,
        "email": "shopper@example.com",
    }
    claims.update(overrides)
    claims = {name: value for name, value in claims.items() if value is not None}
    return pyjwt.encode(claims, key, algorithm=algorithm)


def _authenticate(header: str | None):
    factory = APIRequestFactory()
    extra = {"HTTP_AUTHORIZATION": header} if header is not None else {}
    request = factory.get("/api/v1/me", **extra)
    return Auth0JSONWebTokenAuthentication().authenticate(request)


# ---------------------------------------------------------------------------
# Tenant configuration
# ---------------------------------------------------------------------------


class TestConfiguredTenant:
    def test_disabled_without_domain(self, settings):
        settings.AUTH0 = {"DOMAIN": "", "AUDIENCE": AUDIENCE}
        assert configured_tenant() is None

    def test_disabled_without_audience(self, settings):
        settings.AUTH0 = {"DOMAIN": DOMAIN, "AUDIENCE": ""}
        assert configured_tenant() is None

    def test_urls_derived_from_domain(self, tenant_settings):
        tenant = configured_tenant()

        assert tenant == Auth0Tenant(DOMAIN, AUDIENCE, "RS256")
        assert tenant.issuer == ISSUER
        assert tenant.jwks_url == f"https://{DOMAIN}/.well-known/jwks.json"


# ---------------------------------------------------------------------------
# Auth0 token validation
# ---------------------------------------------------------------------------


class TestAuth0Authentication:
    def test_no_header_defers(self, tenant_settings):
        assert _authenticate(None) is None

    def test_valid_token(self, tenant_settings, jwks):
        token = _token()

        user, raw = _authenticate(f"Bearer {token}")

        assert raw == token
        assert user.sub == "auth0|65f0c1"
        assert user.email == "shopper@example.com"
        assert user.is_authenticated

    def test_jwks_looked_up_for_tenant(self, tenant_settings, jwks):
        token = _token()
        with patch(
            "modules.core.authentication.jwks_client_for", return_value=jwks
        ) as lookup:
            _authenticate(f"Bearer {token}")

        lookup.assert_called_once_with(f"https://{DOMAIN}/.well-known/jwks.json")

    def test_other_issuer_defers_to_local_tokens(self, tenant_settings, jwks):
        assert _authenticate(f"Bearer {_token(iss='https://elsewhere/')}") is None
        jwks.get_signing_key_from_jwt.assert_not_called()

    def test_auth0_disabled_defers(self, settings, jwks):
        settings.AUTH0 = {"DOMAIN": "", "AUDIENCE": ""}

        assert _authenticate(f"Bearer {_token()}") is None

    def test_garbage_token_defers(self, tenant_settings, jwks):
        assert _authenticate("Bearer not-a-jwt") is None

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
    def test_malformed_header_rejected(self, tenant_settings, header):
        with pytest.raises(AuthenticationFailed):
            _authenticate(header)

    def test_wrong_audience_rejected(self, tenant_settings, jwks):
        with pytest.raises(AuthenticationFailed):
            _authenticate(f"Bearer {_token(aud='https://other-api')}")

    def test_expired_token_rejected(self, tenant_settings, jwks):
        with pytest.raises(AuthenticationFailed):
            _authenticate(f"Bearer {_token(exp=int(time.time()) - 60)}")

    def test_missing_subject_rejected(self, tenant_settings, jwks):
        with pytest.raises(AuthenticationFailed):
            _authenticate(f"Bearer {_token(sub=None)}")

    def test_foreign_signature_rejected(self, tenant_settings, jwks):
        with pytest.raises(AuthenticationFailed):
            _authenticate(f"Bearer {_token(key=OTHER_KEY)}")

    def test_algorithm_is_pinned(self, tenant_settings, jwks):
        forged = _token(key="s" * 64, algorithm="HS256")

        with pytest.raises(AuthenticationFailed):
            _authenticate(f"Bearer {forged}")

    def test_jwks_outage_rejected(self, tenant_settings, jwks):
        jwks.get_signing_key_from_jwt.side_effect = PyJWKClientError("down")

        with pytest.raises(AuthenticationFailed):
            _authenticate(f"Bearer {_token()}")


# ---------------------------------------------------------------------------
# Owner resolution
# ---------------------------------------------------------------------------


class TestResolveOwnerId:
    def test_auth0_principal_uses_subject(self, tenant_settings, jwks):
        user, _ = _authenticate(f"Bearer {_token()}")

        assert resolve_owner_id(user) == "auth0|65f0c1"

    def test_local_user_uses_primary_key(self, user_a):
        assert resolve_owner_id(user_a) == str(user_a.pk)

    @pytest.mark.parametrize("user", [None, AnonymousUser()])
    def test_anonymous_is_rejected(self, user):
        with pytest.raises(NotAuthenticated):
            resolve_owner_id(user)
