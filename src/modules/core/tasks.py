"""Asynchronous tasks for the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import event_from_outbox
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Dispatch pending outbox rows onto the in-process event bus.

    Rows are processed oldest first.  A handler error marks only that row
    ``FAILED``; the rest of the batch still goes out and the failed row is
    retried on later runs until ``OUTBOX_MAX_ATTEMPTS`` is reached.
    """
    published = failed = 0
    with transaction.atomic():
        rows = list(
            OutboxEvent.objects.select_for_update()
            .publishable(settings.OUTBOX_MAX_ATTEMPTS)[:batch_size]
        )
        for row in rows:
            try:
                event = event_from_outbox(
                    row.event_type, row.aggregate_id, row.payload
                )
                event_bus.publish(event)
            except Exception as exc:
                logger.exception(
                    "outbox.publish_failed",
                    event_id=str(row.id),
                    event_type=row.event_type,
                )
                row.mark_as_failed(str(exc))
                if row.retry_count >= settings.OUTBOX_MAX_ATTEMPTS:
                    logger.error(
                        "outbox.gave_up",
                        event_id=str(row.id),
                        attempts=row.retry_count,
                    )
                failed += 1
                continue
            row.mark_as_published()
            published += 1

    logger.info("outbox.batch_processed", published=published, failed=failed)
    return {"published": published, "failed": failed}
