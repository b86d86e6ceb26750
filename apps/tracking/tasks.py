"""Celery tasks that rebuild the tracking aggregate cache from the event log."""

import logging
from celery import shared_task

logger = logging.getLogger("freightdesk.tasks")


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def rebuild_tracking_aggregate(self, shipment_id: str):
    """Replay one shipment's events into its aggregate."""
    from apps.shipments.api import get_service
    from apps.shipments.exceptions import NotFoundError, PersistenceError

    try:
        aggregate = get_service().projector.replay(shipment_id)
    except NotFoundError:
        logger.error("No tracking events for %s; nothing to rebuild", shipment_id)
        return None
    except PersistenceError as exc:
        logger.warning("Aggregate rebuild failed for %s: %s", shipment_id, exc)
        raise self.retry(exc=exc)
    return str(aggregate.status)


@shared_task
def rebuild_all_tracking_aggregates():
    from apps.shipments.api import get_service

    projector = get_service().projector
    rebuilt = 0
    for shipment_id in projector.store.shipment_ids():
        projector.replay(shipment_id)
        rebuilt += 1
    logger.info("Rebuilt %d tracking aggregates", rebuilt)
    return rebuilt
