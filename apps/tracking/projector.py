"""
StatusProjector — derives the TrackingAggregate from the event log.

The aggregate is taken from the last event in (timestamp, sequence) order and
written back to the store. Listeners are plain callables that receive the
fresh aggregate; the lifecycle service subscribes one to keep the shipment
record in step with delivered events.
"""

import logging

from apps.shipments.exceptions import NotFoundError
from apps.tracking.models import PROGRESS, PackageStatus, TrackingAggregate

logger = logging.getLogger("freightdesk.tracking")


def build_aggregate(shipment_id, events) -> TrackingAggregate:
    ordered = sorted(events, key=lambda e: e.sort_key)
    last = ordered[-1]
    # Older events may carry the tracking number when the latest one doesn't
    tracking_number = next((e.tracking_number for e in reversed(ordered) if e.tracking_number), "")
    status = PackageStatus(last.status)
    return TrackingAggregate(
        shipment_id      = shipment_id,
        tracking_number  = tracking_number,
        status           = status,
        current_location = last.location_address,
        latitude         = last.latitude,
        longitude        = last.longitude,
        progress         = PROGRESS[status],
        event_count      = len(ordered),
        last_updated     = last.timestamp,
    )


class StatusProjector:

    def __init__(self, store, listeners=None):
        self.store      = store
        self._listeners = list(listeners or [])

    def subscribe(self, listener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def project(self, shipment_id, notify=True) -> TrackingAggregate:
        events = self.store.events_for(shipment_id)
        if not events:
            raise NotFoundError(f"No tracking events for shipment {shipment_id}.",
                                entity_id=shipment_id, operation="project")
        aggregate = self.store.put_aggregate(build_aggregate(shipment_id, events))
        logger.debug("Projected %s -> %s @ %s", shipment_id, aggregate.status,
                     aggregate.current_location)
        if notify:
            for listener in list(self._listeners):
                listener(aggregate)
        return aggregate

    def replay(self, shipment_id) -> TrackingAggregate:
        """Rebuild the cached aggregate without notifying listeners."""
        return self.project(shipment_id, notify=False)
