"""
Library-level contract for the surrounding application (views, tasks, shell).

Each function runs against a lazily built default service wired to the ORM
stores and the live-tracking broadcaster. Tests and callers that need other
collaborators build their own ShipmentLifecycleService.
"""

import threading

from apps.shipments.exceptions import ValidationError
from apps.shipments.service import ShipmentLifecycleService
from apps.shipments.tariff import compute_tariff  # noqa: F401  (re-exported)

_default_service = None
_default_lock = threading.Lock()


def get_service() -> ShipmentLifecycleService:
    global _default_service
    with _default_lock:
        if _default_service is None:
            from apps.tracking.consumers import broadcast_aggregate

            service = ShipmentLifecycleService()
            service.projector.subscribe(broadcast_aggregate)
            _default_service = service
        return _default_service


def set_service(service):
    """Swap the default service (None resets to the lazily built one)."""
    global _default_service
    with _default_lock:
        _default_service = service


def create_shipment(data, with_tracking=False):
    return get_service().create(data, with_tracking=with_tracking)


def update_shipment(shipment_id, changes):
    return get_service().update(shipment_id, changes)


def transition_shipment(shipment_id, status):
    return get_service().transition(shipment_id, status)


def delete_shipment(shipment_id):
    return get_service().delete(shipment_id)


def append_tracking_event(shipment_id=None, status=None, tracking_number="", **event):
    """
    Append an event by shipment id, or by tracking number alone (the package
    id carriers report).
    """
    service = get_service()
    if not shipment_id:
        if not tracking_number:
            raise ValidationError("shipment_id or tracking_number is required.",
                                  fields={"shipment_id": "Required."}, operation="append")
        shipment_id = service.registry.find_by_tracking_number(tracking_number).id
    return service.tracking.append(shipment_id, status, tracking_number=tracking_number, **event)


def get_tracking_aggregate(shipment_id):
    return get_service().tracking.store.get_aggregate(shipment_id)


def find_tracking_aggregate(tracking_number):
    return get_service().tracking.store.find_aggregate(tracking_number)
