"""Bearer-token authentication and owner resolution.

Two kinds of ``Authorization: Bearer <jwt>`` tokens are accepted:

* RS256 tokens issued by the Auth0 tenant in ``settings.AUTH0``, verified
  against the tenant's JWKS.  Keys are cached in-process for
  ``JWKS_CACHE_SECONDS`` so there is no network call on every request.
* HS256 tokens minted by SimpleJWT for local users.  This class returns
  ``None`` for them and ``JWTAuthentication`` takes over.

Tokens are routed on their *unverified* ``iss`` claim only.  Verification
pins algorithm, audience and issuer to the configured tenant and requires
``exp`` and ``sub``; any failure on the Auth0 path is a 401 (Fail Closed).

Every storefront record is scoped by an owner id.  ``resolve_owner_id``
derives it from the authenticated principal only: the Auth0 ``sub`` claim,
or the primary key of a local user.  Request bodies never supply it.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated

logger = structlog.get_logger(__name__)

JWKS_CACHE_SECONDS = 300


@dataclass(frozen=True)
class Auth0Tenant:
    domain: str
    audience: str
    algorithm: str = "RS256"

    @property
    def issuer(self) -> str:
        return f"https://{self.domain}/"

    @property
    def jwks_url(self) -> str:
        return f"https://{self.domain}/.well-known/jwks.json"


def configured_tenant() -> Optional[Auth0Tenant]:
    """The tenant from ``settings.AUTH0``, or ``None`` when Auth0 is off."""
    conf = getattr(settings, "AUTH0", {})
    domain = conf.get("DOMAIN", "")
    audience = conf.get("AUDIENCE", "")
    if not (domain and audience):
        return None
    return Auth0Tenant(domain, audience, conf.get("ALGORITHM", "RS256"))


@lru_cache(maxsize=4)
def jwks_client_for(jwks_url: str) -> PyJWKClient:
    return PyJWKClient(jwks_url, cache_jwk_set=True, lifespan=JWKS_CACHE_SECONDS)


class Auth0User:
    """Principal for requests authenticated via Auth0.

    No local ``User`` row is required; ``sub`` is the owner id.
    """

    is_authenticated = True
    is_active = True

    def __init__(self, payload: dict):
        self.payload = payload
        self.sub: str = payload["sub"]
        self.email: str = payload.get("email", "")

    @property
    def pk(self) -> str:
        # UserRateThrottle keys on ``request.user.pk``.
        return self.sub

    def __str__(self) -> str:  # pragma: no cover
        return self.sub


def resolve_owner_id(user) -> str:
    """Return the owner id for an authenticated principal.

    Raises ``NotAuthenticated`` for anonymous users so views that call it
    directly still fail closed.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated()
    sub = getattr(user, "sub", None)
    if sub:
        return sub
    return str(user.pk)


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    """Validates Auth0 bearer tokens; defers other tokens to SimpleJWT."""

    keyword = "Bearer"

    def authenticate(self, request):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        tenant = configured_tenant()
        if tenant is None or _unverified_issuer(token) != tenant.issuer:
            return None

        payload = self._decode_token(token, tenant)
        user = Auth0User(payload)
        logger.info("auth.token_accepted", sub=user.sub)
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    def _extract_token(self, header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != self.keyword.lower():
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _decode_token(token: str, tenant: Auth0Tenant) -> dict:
        try:
            signing_key = jwks_client_for(tenant.jwks_url).get_signing_key_from_jwt(
                token
            )
            return pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[tenant.algorithm],
                audience=tenant.audience,
                issuer=tenant.issuer,
                options={"require": ["exp", "iss", "aud", "sub"]},
            )
        except PyJWTError as exc:
            logger.warning("auth.token_rejected", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc


def _unverified_issuer(token: str) -> Optional[str]:
    try:
        claims = pyjwt.decode(token, options={"verify_signature": False})
    except PyJWTError:
        return None
    return claims.get("iss")
