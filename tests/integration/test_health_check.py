from unittest.mock import patch

import pytest

from modules.core.models import EventStatus, OutboxEvent

pytestmark = pytest.mark.integration


def _outbox_row(**overrides) -> OutboxEvent:
    data = {
        "event_type": "OrderCreated",
        "aggregate_id": "order-1",
        "topic": "orders",
    }
    data.update(overrides)
    return OutboxEvent.objects.create(**data)


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        data = client.get("/health").json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_cache_outage_returns_503(self, client):
        with patch(
            "modules.core.views._check_cache", side_effect=ConnectionError("down")
        ):
            response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"


class TestOutboxBacklog:
    def test_empty_backlog(self, client):
        data = client.get("/health").json()
        assert data["services"]["outbox"] == {"pending": 0, "exhausted": 0}

    def test_counts_pending_and_exhausted_events(self, client, settings):
        settings.OUTBOX_MAX_ATTEMPTS = 3
        _outbox_row()
        _outbox_row(status=EventStatus.FAILED, retry_count=1)
        _outbox_row(status=EventStatus.FAILED, retry_count=3)
        _outbox_row(status=EventStatus.PUBLISHED)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["services"]["outbox"] == {
            "pending": 2,
            "exhausted": 1,
        }
