"""
Tracking Store — events and aggregates, scoped by shipment id.

The ORM store assigns each event the next per-shipment sequence and relies on
the (shipment_id, sequence) unique constraint as a conditional write: a
concurrent writer that grabbed the same sequence loses and retries.
"""

import copy
import logging
import threading
from collections import defaultdict
from contextlib import nullcontext

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Max

from apps.shipments.exceptions import NotFoundError, PersistenceError, ValidationError
from apps.tracking.models import TrackingAggregate, TrackingEvent

logger = logging.getLogger("freightdesk.tracking")

MAX_APPEND_ATTEMPTS = 3


class TrackingStore:
    """Django ORM-backed tracking store."""

    def atomic(self):
        return transaction.atomic()

    def add_event(self, event: TrackingEvent) -> TrackingEvent:
        for attempt in range(1, MAX_APPEND_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    last = (TrackingEvent.objects
                            .filter(shipment_id=event.shipment_id)
                            .aggregate(m=Max("sequence"))["m"]) or 0
                    event.sequence = last + 1
                    event.save()
                return event
            except IntegrityError:
                logger.warning("Sequence conflict on %s (attempt %d)", event.shipment_id, attempt)
                event._state.adding = True
                event.pk = None
            except DjangoValidationError:
                raise ValidationError(f"'{event.shipment_id}' is not a valid shipment id.",
                                      fields={"shipment_id": "Not a valid id."},
                                      entity_id=event.shipment_id, operation="append")
            except DatabaseError as exc:
                raise PersistenceError(f"Could not store tracking event: {exc}",
                                       entity_id=event.shipment_id, operation="append") from exc
        raise PersistenceError("Concurrent appends kept conflicting.",
                               entity_id=event.shipment_id, operation="append")

    def events_for(self, shipment_id):
        try:
            return list(TrackingEvent.objects.filter(shipment_id=shipment_id)
                        .order_by("timestamp", "sequence"))
        except DjangoValidationError:
            return []
        except DatabaseError as exc:
            raise PersistenceError(f"Could not read tracking events: {exc}",
                                   entity_id=shipment_id, operation="events") from exc

    def get_aggregate(self, shipment_id) -> TrackingAggregate:
        try:
            return TrackingAggregate.objects.get(pk=shipment_id)
        except (TrackingAggregate.DoesNotExist, DjangoValidationError):
            raise NotFoundError(f"No tracking data for shipment {shipment_id}.",
                                entity_id=shipment_id, operation="get_aggregate")
        except DatabaseError as exc:
            raise PersistenceError(f"Could not read tracking aggregate: {exc}",
                                   entity_id=shipment_id, operation="get_aggregate") from exc

    def find_aggregate(self, tracking_number) -> TrackingAggregate:
        aggregate = TrackingAggregate.objects.filter(tracking_number=tracking_number).first()
        if aggregate is None:
            raise NotFoundError(f"No tracking data for {tracking_number}.",
                                entity_id=tracking_number, operation="find_aggregate")
        return aggregate

    def put_aggregate(self, aggregate: TrackingAggregate) -> TrackingAggregate:
        try:
            aggregate.save()
        except DatabaseError as exc:
            raise PersistenceError(f"Could not store tracking aggregate: {exc}",
                                   entity_id=aggregate.shipment_id,
                                   operation="put_aggregate") from exc
        return aggregate

    def delete_for(self, shipment_id):
        """Remove every event and the aggregate. Returns (events, aggregates) deleted."""
        try:
            with transaction.atomic():
                events, _ = TrackingEvent.objects.filter(shipment_id=shipment_id).delete()
                aggregates, _ = TrackingAggregate.objects.filter(pk=shipment_id).delete()
        except DatabaseError as exc:
            raise PersistenceError(f"Could not delete tracking data: {exc}",
                                   entity_id=shipment_id, operation="delete_tracking") from exc
        return events, aggregates

    def shipment_ids(self):
        return list(TrackingEvent.objects.order_by().values_list("shipment_id", flat=True).distinct())


class InMemoryTrackingStore(TrackingStore):
    """Dict-backed store. Records are copied in and out."""

    def __init__(self):
        self._events     = defaultdict(list)
        self._aggregates = {}
        self._lock       = threading.Lock()

    def atomic(self):
        # No rollback: an event stays in the log even if a later step fails
        return nullcontext()

    def add_event(self, event: TrackingEvent) -> TrackingEvent:
        with self._lock:
            stored = self._events[str(event.shipment_id)]
            event.sequence = len(stored) + 1
            stored.append(copy.deepcopy(event))
        return event

    def events_for(self, shipment_id):
        with self._lock:
            events = [copy.deepcopy(e) for e in self._events.get(str(shipment_id), [])]
        return sorted(events, key=lambda e: e.sort_key)

    def get_aggregate(self, shipment_id) -> TrackingAggregate:
        with self._lock:
            aggregate = self._aggregates.get(str(shipment_id))
        if aggregate is None:
            raise NotFoundError(f"No tracking data for shipment {shipment_id}.",
                                entity_id=shipment_id, operation="get_aggregate")
        return copy.deepcopy(aggregate)

    def find_aggregate(self, tracking_number) -> TrackingAggregate:
        with self._lock:
            for aggregate in self._aggregates.values():
                if aggregate.tracking_number == tracking_number:
                    return copy.deepcopy(aggregate)
        raise NotFoundError(f"No tracking data for {tracking_number}.",
                            entity_id=tracking_number, operation="find_aggregate")

    def put_aggregate(self, aggregate: TrackingAggregate) -> TrackingAggregate:
        with self._lock:
            self._aggregates[str(aggregate.shipment_id)] = copy.deepcopy(aggregate)
        return aggregate

    def delete_for(self, shipment_id):
        with self._lock:
            events = self._events.pop(str(shipment_id), [])
            aggregate = self._aggregates.pop(str(shipment_id), None)
        return len(events), int(aggregate is not None)

    def shipment_ids(self):
        with self._lock:
            return [key for key, events in self._events.items() if events]
