"""
TrackingEventLog — append-only log of tracking events.

The log records what was observed; it does not check the event against the
shipment's status. Appends for one shipment are serialised and projected
before returning, so the aggregate is read-after-write consistent.
"""

import logging
import threading
import uuid
import weakref
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.shipments.exceptions import ValidationError
from apps.tracking.models import GeoLocation, PackageStatus, TrackingEvent
from apps.tracking.projector import StatusProjector
from apps.tracking.store import TrackingStore

logger = logging.getLogger("freightdesk.tracking")


class KeyedLocks:
    """One lock per key; unrelated keys never contend.

    Entries live only while some caller holds the lock object.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def __len__(self):
        return len(self._locks)

    def lock_for(self, key):
        with self._guard:
            lock = self._locks.get(str(key))
            if lock is None:
                lock = threading.RLock()
                self._locks[str(key)] = lock
            return lock


def _coerce_shipment_id(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"'{value}' is not a valid shipment id.",
                              fields={"shipment_id": "Not a valid id."}, operation="append")


def _coerce_timestamp(value):
    if value is None or value == "":
        return timezone.now()
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value)
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError("timestamp is not a valid ISO-8601 datetime.",
                                  fields={"timestamp": value})
        value = parsed
    if not isinstance(value, datetime):
        raise ValidationError("timestamp must be a datetime.", fields={"timestamp": repr(value)})
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _coerce_coordinate(value, field):
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number.", fields={field: value})


def _coerce_location(location):
    if location is None:
        return GeoLocation()
    if isinstance(location, GeoLocation):
        return location
    if isinstance(location, str):
        return GeoLocation(address=location)
    if isinstance(location, dict):
        return GeoLocation(
            address   = location.get("address") or "",
            latitude  = _coerce_coordinate(location.get("latitude"), "latitude"),
            longitude = _coerce_coordinate(location.get("longitude"), "longitude"),
        )
    raise ValidationError("location must be an address or {address, latitude, longitude}.")


class TrackingEventLog:

    def __init__(self, store=None, projector=None):
        self.store     = store or TrackingStore()
        self.projector = projector or StatusProjector(self.store)
        self._locks    = KeyedLocks()

    def append(self, shipment_id, status, location=None, description="",
               timestamp=None, tracking_number="", is_notified=False) -> TrackingEvent:
        if not shipment_id:
            raise ValidationError("shipment_id is required.", fields={"shipment_id": "Required."},
                                  operation="append")
        if not status:
            raise ValidationError("status is required.", fields={"status": "Required."},
                                  entity_id=shipment_id, operation="append")
        if status not in PackageStatus.values:
            raise ValidationError(f"Unknown package status '{status}'.",
                                  fields={"status": status}, entity_id=shipment_id,
                                  operation="append")
        shipment_id = _coerce_shipment_id(shipment_id)

        where = _coerce_location(location)
        event = TrackingEvent(
            shipment_id      = shipment_id,
            tracking_number  = tracking_number or "",
            timestamp        = _coerce_timestamp(timestamp),
            status           = status,
            location_address = where.address,
            latitude         = where.latitude,
            longitude        = where.longitude,
            description      = description or "",
            is_notified      = bool(is_notified),
        )

        with self._locks.lock_for(shipment_id):
            with self.store.atomic():
                self.store.add_event(event)
                logger.info("Tracking event %s#%d %s appended",
                            shipment_id, event.sequence, event.status)
                self.projector.project(shipment_id)
        return event

    def events(self, shipment_id):
        return self.store.events_for(shipment_id)
