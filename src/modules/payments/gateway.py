"""Payment gateway clients.

``HttpPaymentGateway`` opens hosted-checkout sessions with a Razorpay-style
REST API (``POST /orders`` with HTTP basic auth).  ``MockPaymentGateway``
hands out ``mock_<hex>`` ids without touching the network and is selected
when no API credentials are configured.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx
import structlog
from django.conf import settings

from modules.payments.exceptions import GatewayUnavailable

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GatewaySession:
    session_id: str
    amount: int
    currency: str


class PaymentGateway(Protocol):
    key_id: str

    def create_session(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewaySession: ...


class HttpPaymentGateway:
    """Gateway client over ``httpx`` with a bounded timeout."""

    def __init__(
        self,
        base_url: str,
        key_id: str,
        key_secret: str,
        timeout: float,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.key_id = key_id
        self._key_secret = key_secret
        self.timeout = timeout
        self._transport = transport

    def _request(self, method: str, path: str, *, json_body: Dict[str, Any]) -> Dict:
        url = f"{self.base_url}{path}"
        with httpx.Client(
            timeout=self.timeout,
            auth=(self.key_id, self._key_secret),
            transport=self._transport,
        ) as client:
            response = client.request(method, url, json=json_body)
        response.raise_for_status()
        return response.json()

    def create_session(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewaySession:
        log = logger.bind(receipt=receipt, amount=amount, currency=currency)
        try:
            data = self._request(
                "POST",
                "/orders",
                json_body={
                    "amount": amount,
                    "currency": currency,
                    "receipt": receipt,
                    "notes": notes or {},
                },
            )
        except httpx.TimeoutException as exc:
            log.warning("gateway.timeout", timeout=self.timeout)
            raise GatewayUnavailable("Payment gateway timed out.") from exc
        except httpx.HTTPStatusError as exc:
            log.warning("gateway.error_response", status_code=exc.response.status_code)
            raise GatewayUnavailable(
                f"Payment gateway answered {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("gateway.transport_error", error=str(exc))
            raise GatewayUnavailable("Payment gateway is unreachable.") from exc
        except ValueError as exc:
            log.warning("gateway.malformed_response")
            raise GatewayUnavailable("Payment gateway sent a malformed reply.") from exc

        session_id = data.get("id") if isinstance(data, dict) else None
        if not session_id:
            log.warning("gateway.missing_session_id")
            raise GatewayUnavailable("Payment gateway reply has no session id.")

        log.info("gateway.session_created", session_id=session_id)
        return GatewaySession(
            session_id=str(session_id),
            amount=int(data.get("amount", amount)),
            currency=str(data.get("currency", currency)),
        )


class MockPaymentGateway:
    """Offline gateway for local development and tests."""

    key_id = "mock_key"

    def create_session(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> GatewaySession:
        session_id = f"mock_{secrets.token_hex(8)}"
        logger.info(
            "gateway.mock_session_created", session_id=session_id, receipt=receipt
        )
        return GatewaySession(session_id=session_id, amount=amount, currency=currency)


def get_payment_gateway() -> PaymentGateway:
    """Build the gateway from ``settings.PAYMENT_GATEWAY``."""
    conf = settings.PAYMENT_GATEWAY
    if not (conf["KEY_ID"] and conf["KEY_SECRET"]):
        return MockPaymentGateway()
    return HttpPaymentGateway(
        base_url=conf["BASE_URL"],
        key_id=conf["KEY_ID"],
        key_secret=conf["KEY_SECRET"],
        timeout=conf["TIMEOUT"],
    )
