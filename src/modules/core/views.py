import time
from typing import Any, Callable, Dict

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.authentication import resolve_owner_id
from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger(__name__)


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def _timed(check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    check()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def _outbox_backlog() -> Dict[str, int]:
    """Events still waiting for the publisher, and those it gave up on."""
    return {
        "pending": OutboxEvent.objects.publishable(
            settings.OUTBOX_MAX_ATTEMPTS
        ).count(),
        "exhausted": OutboxEvent.objects.filter(
            status=EventStatus.FAILED,
            retry_count__gte=settings.OUTBOX_MAX_ATTEMPTS,
        ).count(),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness check covering the database and the cache.

    The outbox backlog is informational; a stuck publisher does not make
    the API unhealthy.
    """
    services: Dict[str, Dict[str, Any]] = {}
    checks = {"database": _check_database, "cache": _check_cache}

    for name, check in checks.items():
        try:
            services[name] = _timed(check)
        except Exception:
            services[name] = {"status": "down"}
            logger.exception("health_check.service_down", service=name)

    healthy = all(service["status"] == "up" for service in services.values())
    if services["database"]["status"] == "up":
        services["outbox"] = _outbox_backlog()

    logger.info("health_check.completed", healthy=healthy)
    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """Echo the owner id the storefront will scope records by."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        return Response({"owner_id": resolve_owner_id(request.user)})
