"""
Shipment Registry — keyed store for Shipment records.

ShipmentRegistry is backed by the Django ORM; InMemoryShipmentRegistry keeps
copies in a dict and is what unit tests (and the dev shell) inject.
Both translate store failures into PersistenceError / NotFoundError.
"""

import copy
import threading
from contextlib import nullcontext

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from apps.shipments.exceptions import NotFoundError, PersistenceError
from apps.shipments.models import Shipment


class ShipmentRegistry:
    """Django ORM-backed registry."""

    def atomic(self):
        return transaction.atomic()

    def get(self, shipment_id, for_update=False) -> Shipment:
        qs = Shipment.objects.all()
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=shipment_id)
        except (Shipment.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Shipment {shipment_id} not found.",
                                entity_id=shipment_id, operation="get")
        except DatabaseError as exc:
            raise PersistenceError(f"Could not read shipment: {exc}",
                                   entity_id=shipment_id, operation="get") from exc

    def put(self, shipment: Shipment) -> Shipment:
        try:
            shipment.save()
        except DatabaseError as exc:
            raise PersistenceError(f"Could not store shipment: {exc}",
                                   entity_id=shipment.id, operation="put") from exc
        return shipment

    def delete(self, shipment_id):
        try:
            deleted, _ = Shipment.objects.filter(pk=shipment_id).delete()
        except DatabaseError as exc:
            raise PersistenceError(f"Could not delete shipment: {exc}",
                                   entity_id=shipment_id, operation="delete") from exc
        if not deleted:
            raise NotFoundError(f"Shipment {shipment_id} not found.",
                                entity_id=shipment_id, operation="delete")

    def find_by_tracking_number(self, tracking_number) -> Shipment:
        shipment = Shipment.objects.filter(tracking_number=tracking_number).first()
        if shipment is None:
            raise NotFoundError(f"No shipment with tracking number {tracking_number}.",
                                entity_id=tracking_number, operation="find")
        return shipment

    def list(self, status=None):
        qs = Shipment.objects.all()
        if status:
            qs = qs.filter(status=status)
        return list(qs)


class InMemoryShipmentRegistry(ShipmentRegistry):
    """Dict-backed registry. Records are copied in and out."""

    def __init__(self):
        self._items = {}
        self._lock  = threading.Lock()

    def atomic(self):
        return nullcontext()

    def get(self, shipment_id, for_update=False) -> Shipment:
        with self._lock:
            shipment = self._items.get(str(shipment_id))
        if shipment is None:
            raise NotFoundError(f"Shipment {shipment_id} not found.",
                                entity_id=shipment_id, operation="get")
        return copy.deepcopy(shipment)

    def put(self, shipment: Shipment) -> Shipment:
        with self._lock:
            self._items[str(shipment.id)] = copy.deepcopy(shipment)
        return shipment

    def delete(self, shipment_id):
        with self._lock:
            if self._items.pop(str(shipment_id), None) is None:
                raise NotFoundError(f"Shipment {shipment_id} not found.",
                                    entity_id=shipment_id, operation="delete")

    def find_by_tracking_number(self, tracking_number) -> Shipment:
        with self._lock:
            for shipment in self._items.values():
                if shipment.tracking_number == tracking_number:
                    return copy.deepcopy(shipment)
        raise NotFoundError(f"No shipment with tracking number {tracking_number}.",
                            entity_id=tracking_number, operation="find")

    def list(self, status=None):
        with self._lock:
            items = [copy.deepcopy(s) for s in self._items.values()
                     if not status or s.status == status]
        return sorted(items, key=lambda s: s.created_at, reverse=True)
