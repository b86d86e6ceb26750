"""Celery tasks for shipment lifecycle."""

import logging
from celery import shared_task

logger = logging.getLogger("freightdesk.tasks")


@shared_task
def flag_overdue_shipments():
    """
    Cron task: move confirmed / in-transit shipments whose estimated
    delivery date has passed to DELAYED.
    """
    from apps.shipments.api import get_service

    delayed = get_service().sweep_overdue()
    logger.info("Flagged %d overdue shipments", len(delayed))
    return [str(s.id) for s in delayed]
