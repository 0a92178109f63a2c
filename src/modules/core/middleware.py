import re
import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)

# Gateways send their delivery ids here; anything else is replaced.
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def _inbound_request_id(request: HttpRequest) -> str:
    candidate = request.META.get("HTTP_X_REQUEST_ID", "")
    if _REQUEST_ID_RE.fullmatch(candidate):
        return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Attach a correlation ID to every request and its log lines.

    A well-formed ``X-Request-ID`` header (payment gateways and the
    storefront client both forward one) is reused; otherwise a UUID4 is
    generated.  The ID is bound into structlog's contextvars and echoed on
    the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _inbound_request_id(request)
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info("request.started", method=request.method, path=request.path)

        response = self.get_response(request)

        logger.info(
            "request.finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        response["X-Request-ID"] = cid
        return response
