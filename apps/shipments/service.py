"""
ShipmentLifecycleService — owns shipment creation, status transitions,
edits and deletion.

Flow:  create  →  transition (draft → confirmed → in_transit → delivered)
                        ↑
           delivered tracking event (via StatusProjector listener)

Collaborators (registry, tracking log, tariff calculator) are injected so
they can be swapped in tests.
"""

import logging
import random
import string
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.shipments.conf import freight_setting
from apps.shipments.exceptions import (
    InvalidTransitionError, NotFoundError, PersistenceError, ShipmentFinalizedError,
    ValidationError,
)
from apps.shipments.models import Shipment
from apps.shipments.registry import ShipmentRegistry
from apps.shipments.tariff import MAX_AMOUNT, TariffCalculator, to_amount
from apps.tracking.log import TrackingEventLog
from apps.tracking.models import PackageStatus

logger = logging.getLogger("freightdesk.lifecycle")

S = Shipment.Status

TRANSITIONS = {
    S.DRAFT:      {S.CONFIRMED, S.CANCELLED},
    S.CONFIRMED:  {S.IN_TRANSIT, S.DELAYED, S.CANCELLED},
    S.IN_TRANSIT: {S.DELIVERED, S.DELAYED, S.CANCELLED},
    S.DELAYED:    {S.IN_TRANSIT, S.DELIVERED, S.CANCELLED},
    S.DELIVERED:  set(),
    S.CANCELLED:  set(),
}
TERMINAL = {S.DELIVERED, S.CANCELLED}

# Authored on create / update; everything else is derived or lifecycle-owned
EDITABLE_FIELDS = {
    "reference", "tracking_number", "shipment_type", "customer", "carrier", "carrier_name",
    "origin", "destination", "lines", "scheduled_date", "estimated_delivery_date",
    "base_price", "distance_km", "extra_fees", "customs_fees", "tariff_zone",
    "service_level", "notes",
}
DERIVED_FIELDS = {"id", "total_weight", "total_price", "created_at", "updated_at",
                  "actual_delivery_date"}
PRICING_FIELDS = ("base_price", "distance_km", "extra_fees", "customs_fees")
DATE_FIELDS    = ("scheduled_date", "estimated_delivery_date")

LINE_PRECISION   = Decimal("0.001")
# Product of two three-place line values; the sum stays exact
WEIGHT_PRECISION = Decimal("0.000001")


def can_transition(current, new) -> bool:
    return new in TRANSITIONS[S(current)]


def _generate_reference(now=None):
    now = now or timezone.now()
    return f"{freight_setting('REFERENCE_PREFIX')}{now:%Y%m%d%H%M%S}"


def _generate_tracking_number():
    digits = "".join(random.choices(string.digits, k=int(freight_setting("TRACKING_DIGITS"))))
    return f"{freight_setting('TRACKING_PREFIX')}{digits}"


def normalize_lines(lines):
    """Validate cargo lines; quantities and weights are stored as decimal strings
    with at most three decimal places."""
    if lines is None:
        return []
    if not isinstance(lines, (list, tuple)):
        raise ValidationError("lines must be a list.", fields={"lines": "Not a list."})
    normalized = []
    for idx, line in enumerate(lines):
        if not isinstance(line, dict):
            raise ValidationError(f"Line {idx} must be an object.", fields={f"lines[{idx}]": line})
        quantity = to_amount(line.get("quantity", 0), f"lines[{idx}].quantity")
        weight   = to_amount(line.get("weight", 0), f"lines[{idx}].weight")
        for name, amount in (("quantity", quantity), ("weight", weight)):
            if amount != amount.quantize(LINE_PRECISION):
                raise ValidationError(f"lines[{idx}].{name} allows at most three decimal places.",
                                      fields={f"lines[{idx}].{name}": str(amount)})
        normalized.append({
            "product_name": str(line.get("product_name") or ""),
            "quantity":     str(quantity),
            "weight":       str(weight),
        })
    return normalized


def compute_total_weight(lines) -> Decimal:
    total = sum((Decimal(str(line["quantity"])) * Decimal(str(line["weight"])) for line in lines),
                Decimal("0"))
    if total >= MAX_AMOUNT:
        raise ValidationError("Total weight is too large.", fields={"lines": "Too heavy."})
    return total.quantize(WEIGHT_PRECISION)


def _coerce_date(value, field):
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value)
            day    = None if parsed else parse_date(value)
        except ValueError:
            parsed = day = None
        if day is not None:
            parsed = datetime.combine(day, time.min)
        if parsed is None:
            raise ValidationError(f"{field} is not a valid datetime.", fields={field: value})
        value = parsed
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if not isinstance(value, datetime):
        raise ValidationError(f"{field} must be a date or datetime.", fields={field: repr(value)})
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


@dataclass
class DeletionReport:
    shipment_id:       str
    events_deleted:    int = 0
    aggregate_deleted: bool = False
    warning:           Optional[str] = None


class ShipmentLifecycleService:
    """
    Shipment orchestration.
    Dependencies are injected so they can be swapped in tests.
    """

    def __init__(self, registry=None, tracking_log=None, tariff_calculator=None):
        self.registry    = registry          or ShipmentRegistry()
        self.tracking    = tracking_log      or TrackingEventLog()
        self.tariff_calc = tariff_calculator or TariffCalculator()
        self.tracking.projector.subscribe(self._on_tracking_update)

    @property
    def projector(self):
        return self.tracking.projector

    # ── Reads ──────────────────────────────────────────────────────────────────
    def get(self, shipment_id) -> Shipment:
        return self.registry.get(shipment_id)

    def list(self, status=None):
        return self.registry.list(status=status)

    # ── Create ────────────────────────────────────────────────────────────────
    def create(self, data: dict, with_tracking=False) -> Shipment:
        """
        Validate and store a new shipment. When tracking is requested (or a
        tracking number is supplied) an initial 'registered' event is logged
        at the origin.
        """
        data = dict(data)
        status = data.pop("status", None) or S.DRAFT
        if status not in S.values:
            raise ValidationError(f"Unknown shipment status '{status}'.",
                                  fields={"status": status}, operation="create")
        self._reject_fields(data, operation="create")

        now = timezone.now()
        shipment = Shipment(status=status, created_at=now, updated_at=now)
        self._apply(shipment, data, operation="create")

        prefix = freight_setting("REFERENCE_PREFIX")
        if not shipment.reference.strip() or shipment.reference.strip() == prefix:
            shipment.reference = _generate_reference(now)
        if with_tracking and not shipment.tracking_number:
            shipment.tracking_number = _generate_tracking_number()
        if status == S.DELIVERED:
            shipment.actual_delivery_date = now

        with self.registry.atomic():
            self.registry.put(shipment)
            if shipment.tracking_number:
                try:
                    self.tracking.append(
                        shipment.id, PackageStatus.REGISTERED,
                        location=shipment.origin, timestamp=now,
                        tracking_number=shipment.tracking_number,
                        description="Shipment registered",
                    )
                except Exception:
                    # The registry may not share a transaction with the tracking store
                    self._discard(shipment.id)
                    raise

        logger.info("Shipment %s created (%s, %s kg)", shipment.reference, shipment.id,
                    shipment.total_weight)
        return shipment

    # ── Transition ────────────────────────────────────────────────────────────
    def transition(self, shipment_id, new_status, observed=False) -> Shipment:
        """
        Move a shipment to new_status if the state machine allows it.
        Same-status requests are no-ops. observed=True marks a delivery seen
        in the tracking log, which is accepted from any non-terminal status.
        """
        if new_status not in S.values:
            raise ValidationError(f"Unknown shipment status '{new_status}'.",
                                  fields={"status": new_status}, entity_id=shipment_id,
                                  operation="transition")
        new_status = S(new_status)

        with self.registry.atomic():
            shipment = self.registry.get(shipment_id, for_update=True)
            current = S(shipment.status)
            if current == new_status:
                return shipment
            allowed = can_transition(current, new_status) or (
                observed and new_status == S.DELIVERED and current not in TERMINAL)
            if not allowed:
                logger.warning("Rejected transition %s -> %s for %s",
                               current, new_status, shipment_id)
                raise InvalidTransitionError(
                    f"Cannot move shipment from {current} to {new_status}.",
                    entity_id=shipment_id, operation="transition")

            now = timezone.now()
            shipment.status = new_status
            shipment.updated_at = now
            if new_status == S.DELIVERED:
                shipment.actual_delivery_date = now
            self.registry.put(shipment)

        logger.info("Shipment %s: %s -> %s", shipment.reference, current, new_status)
        return shipment

    # ── Update ────────────────────────────────────────────────────────────────
    def update(self, shipment_id, changes: dict) -> Shipment:
        changes = dict(changes)
        with self.registry.atomic():
            shipment = self.registry.get(shipment_id, for_update=True)
            if shipment.is_finalized:
                raise ShipmentFinalizedError(
                    f"Shipment is finalized ({shipment.status}).",
                    entity_id=shipment_id, operation="update")
            if "status" in changes:
                if changes.pop("status") != shipment.status:
                    raise ValidationError("Status changes go through transition.",
                                          fields={"status": "Read-only here."},
                                          entity_id=shipment_id, operation="update")
            self._reject_fields(changes, operation="update", entity_id=shipment_id)
            self._apply(shipment, changes, operation="update")
            if not shipment.reference.strip():
                raise ValidationError("reference cannot be blank.", fields={"reference": "Blank."},
                                      entity_id=shipment_id, operation="update")
            shipment.updated_at = timezone.now()
            self.registry.put(shipment)

        logger.info("Shipment %s updated (%s)", shipment.reference, ", ".join(sorted(changes)))
        return shipment

    # ── Delete ────────────────────────────────────────────────────────────────
    def delete(self, shipment_id) -> DeletionReport:
        """
        Delete the shipment, then its tracking data. Tracking cleanup is best
        effort: a failure there is reported, the shipment stays deleted.
        """
        self.registry.delete(shipment_id)
        report = DeletionReport(shipment_id=str(shipment_id))
        try:
            events, aggregates = self.tracking.store.delete_for(shipment_id)
        except PersistenceError as exc:
            report.warning = f"Tracking data for {shipment_id} was not removed: {exc}"
            logger.warning(report.warning)
        else:
            report.events_deleted = events
            report.aggregate_deleted = bool(aggregates)
        logger.info("Shipment %s deleted (%d tracking events)", shipment_id,
                    report.events_deleted)
        return report

    # ── Overdue sweep ─────────────────────────────────────────────────────────
    def sweep_overdue(self, now=None):
        """Mark confirmed / in-transit shipments past their ETA as delayed."""
        now = now or timezone.now()
        cutoff = now - timedelta(hours=int(freight_setting("OVERDUE_GRACE_HOURS")))
        delayed = []
        for status in (S.CONFIRMED, S.IN_TRANSIT):
            for shipment in self.registry.list(status=status):
                eta = shipment.estimated_delivery_date
                if eta and eta < cutoff:
                    delayed.append(self.transition(shipment.id, S.DELAYED))
        return delayed

    # ── Tracking → shipment sync ─────────────────────────────────────────────
    def _on_tracking_update(self, aggregate):
        if aggregate.status != PackageStatus.DELIVERED:
            return
        try:
            self.transition(aggregate.shipment_id, S.DELIVERED, observed=True)
        except (InvalidTransitionError, NotFoundError) as exc:
            logger.warning("Delivered event not applied to shipment %s: %s",
                           aggregate.shipment_id, exc.message)

    # ── Helpers ──────────────────────────────────────────────────────────────
    def _reject_fields(self, data, operation, entity_id=None):
        derived = sorted(set(data) & DERIVED_FIELDS)
        if derived:
            raise ValidationError(f"Derived fields cannot be set: {', '.join(derived)}.",
                                  fields={f: "Read-only." for f in derived},
                                  entity_id=entity_id, operation=operation)
        unknown = sorted(set(data) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(unknown)}.",
                                  fields={f: "Unknown field." for f in unknown},
                                  entity_id=entity_id, operation=operation)

    def _apply(self, shipment, data, operation):
        errors = {}
        for field in ("origin", "destination"):
            if field in data or operation == "create":
                value = data.get(field)
                if not isinstance(value, str) or not value.strip():
                    errors[field] = "Required."
        if "shipment_type" in data and data["shipment_type"] not in Shipment.Type.values:
            errors["shipment_type"] = f"Unknown type '{data['shipment_type']}'."
        if "tariff_zone" in data and data["tariff_zone"] not in Shipment.Zone.values:
            errors["tariff_zone"] = f"Unknown zone '{data['tariff_zone']}'."
        if "service_level" in data and data["service_level"] not in Shipment.ServiceLevel.values:
            errors["service_level"] = f"Unknown service level '{data['service_level']}'."
        if errors:
            raise ValidationError("Invalid shipment data.", fields=errors,
                                  entity_id=shipment.id if operation == "update" else None,
                                  operation=operation)

        for field, value in data.items():
            if field == "lines":
                value = normalize_lines(value)
            elif field in PRICING_FIELDS:
                value = to_amount(value, field)
            elif field in DATE_FIELDS:
                value = _coerce_date(value, field)
            elif field in ("origin", "destination"):
                value = value.strip()
            elif value is None:
                value = ""
            setattr(shipment, field, value)

        shipment.total_weight = compute_total_weight(shipment.lines or [])
        shipment.total_price = self.tariff_calc.quote(
            shipment.base_price, shipment.total_weight, shipment.distance_km,
            shipment.extra_fees, zone=shipment.tariff_zone,
            service_level=shipment.service_level, customs_fees=shipment.customs_fees,
        )["total_price"]

    def _discard(self, shipment_id):
        try:
            self.registry.delete(shipment_id)
        except NotFoundError:
            pass
