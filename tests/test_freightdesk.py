"""
FreightDesk Test Suite — core
==============================
Covers: Tariff | Lifecycle | Tracking log | Projection | Concurrency

Runs against the in-memory registry and tracking store; no database.

Run:
    pytest tests/ -v
"""

import threading
from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from apps.shipments.exceptions import (
    InvalidTransitionError, NotFoundError, PersistenceError, ShipmentFinalizedError,
    ValidationError,
)

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=dt_timezone.utc)
T1 = T0 + timedelta(hours=6)
T2 = T0 + timedelta(days=1)


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def registry():
    from apps.shipments.registry import InMemoryShipmentRegistry
    return InMemoryShipmentRegistry()


@pytest.fixture
def store():
    from apps.tracking.store import InMemoryTrackingStore
    return InMemoryTrackingStore()


@pytest.fixture
def service(registry, store):
    from apps.shipments.service import ShipmentLifecycleService
    from apps.tracking.log import TrackingEventLog
    return ShipmentLifecycleService(registry=registry, tracking_log=TrackingEventLog(store=store))


@pytest.fixture
def payload():
    return {
        "origin":      "Douala",
        "destination": "Yaoundé",
        "customer":    "cust-42",
        "lines": [
            {"product_name": "Cement", "quantity": 2, "weight": 10},
            {"product_name": "Tiles",  "quantity": 1, "weight": 5},
        ],
    }


@pytest.fixture
def shipment(service, payload):
    return service.create(payload)


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Tariff Calculation
# ═══════════════════════════════════════════════════════════════════════════════

class TestTariffCalculator:
    """Unit tests for TariffCalculator pricing rules."""

    def setup_method(self):
        from apps.shipments.tariff import TariffCalculator
        self.calc = TariffCalculator()

    def test_additive_formula(self):
        # 10 + 100×0.5 + 200×0.1 + 0
        assert self.calc.price(10, 100, 200, 0) == Decimal("80.00")

    def test_compute_tariff_uses_default_rates(self):
        from apps.shipments.api import compute_tariff
        assert compute_tariff(10, 100, 200, 0) == Decimal("80.00")
        assert compute_tariff("10.5", "3", "7", "1.25") == Decimal("13.95")

    def test_rounds_half_up_to_cents(self):
        assert self.calc.price("0.005", 0, 0, 0) == Decimal("0.01")
        assert self.calc.price(0, "0.333", 0, 0) == Decimal("0.17")

    def test_deterministic(self):
        results = {self.calc.price("12.34", "56.7", "89", "1") for _ in range(5)}
        assert len(results) == 1

    def test_zero_inputs_are_valid(self):
        assert self.calc.price(0, 0, 0, 0) == Decimal("0.00")

    @pytest.mark.parametrize("args", [
        (-1, 0, 0, 0),
        (0, -0.5, 0, 0),
        (0, 0, -200, 0),
        (0, 0, 0, "-0.01"),
    ])
    def test_negative_input_rejected(self, args):
        with pytest.raises(ValidationError) as exc_info:
            self.calc.price(*args)
        assert "negative" in exc_info.value.message

    @pytest.mark.parametrize("bad", ["abc", True, "NaN", "Infinity", [1]])
    def test_non_numeric_input_rejected(self, bad):
        with pytest.raises(ValidationError):
            self.calc.price(bad, 0, 0, 0)

    @pytest.mark.parametrize("args", [
        (Decimal("1e30"), 0, 0, 0),
        (0, "1000000000000", 0, 0),
        (0, 0, 0, Decimal("9.99e14")),
    ])
    def test_oversized_input_rejected(self, args):
        from apps.shipments.tariff import compute_tariff
        with pytest.raises(ValidationError) as exc_info:
            compute_tariff(*args)
        assert "must be below" in exc_info.value.message

    def test_largest_amount_still_priced(self):
        assert self.calc.price("999999999999.99", 0, 0, 0) == Decimal("999999999999.99")

    def test_custom_rates(self):
        from apps.shipments.tariff import TariffCalculator
        calc = TariffCalculator(weight_rate="0.1", distance_rate="0.1")
        assert calc.price(10, 100, 200, 0) == Decimal("40.00")

    def test_negative_rate_rejected(self):
        from apps.shipments.tariff import TariffCalculator
        with pytest.raises(ValidationError):
            TariffCalculator(weight_rate="-0.5")

    def test_national_standard_quote_equals_price(self):
        quote = self.calc.quote(10, 100, 200, 5)
        assert quote["total_price"] == self.calc.price(10, 100, 200, 5)
        assert quote["multiplier"]  == Decimal("1.0")

    def test_europe_express_breakdown(self):
        quote = self.calc.quote(10, 10, 100, 0, zone="europe", service_level="express")
        # (10 + 10×1.20 + 100×0.20) × 1.5
        assert quote["weight_price"]   == Decimal("12.00")
        assert quote["distance_price"] == Decimal("20.00")
        assert quote["total_price"]    == Decimal("63.00")

    def test_customs_fees_included_before_multiplier(self):
        quote = self.calc.quote(100, 0, 0, 0, zone="international",
                                service_level="economic", customs_fees=50)
        assert quote["customs_fees"] == Decimal("50.00")
        assert quote["total_price"]  == Decimal("120.00")

    def test_unknown_zone_rejected(self):
        with pytest.raises(ValidationError):
            self.calc.quote(10, 1, 1, zone="mars")

    def test_unknown_service_level_rejected(self):
        with pytest.raises(ValidationError):
            self.calc.quote(10, 1, 1, service_level="overnight")


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Shipment Create
# ═══════════════════════════════════════════════════════════════════════════════

class TestShipmentCreate:

    def test_total_weight_from_lines(self, shipment):
        assert shipment.total_weight == Decimal("25.000")

    def test_defaults(self, shipment):
        assert shipment.status == "draft"
        assert shipment.shipment_type == "local"
        assert shipment.tracking_number == ""
        assert shipment.actual_delivery_date is None
        assert shipment.created_at == shipment.updated_at

    def test_price_derived_from_inputs(self, service, payload):
        payload.update(base_price="10", distance_km="200")
        shipment = service.create(payload)
        # 10 + 25×0.5 + 200×0.1
        assert shipment.total_price == Decimal("42.50")

    def test_empty_lines_weigh_nothing(self, service):
        shipment = service.create({"origin": "A", "destination": "B", "lines": []})
        assert shipment.total_weight == Decimal("0.000")

    def test_caller_weight_is_not_trusted(self, service, payload):
        payload["total_weight"] = "999"
        with pytest.raises(ValidationError) as exc_info:
            service.create(payload)
        assert "total_weight" in exc_info.value.fields

    @pytest.mark.parametrize("field", ["origin", "destination"])
    def test_route_required(self, service, payload, field):
        payload[field] = "   "
        with pytest.raises(ValidationError) as exc_info:
            service.create(payload)
        assert field in exc_info.value.fields

    def test_missing_route_rejected(self, service):
        with pytest.raises(ValidationError):
            service.create({"origin": "Douala"})

    def test_negative_line_rejected(self, service, payload):
        payload["lines"][0]["quantity"] = -1
        with pytest.raises(ValidationError):
            service.create(payload)

    def test_sub_gram_lines_sum_exactly(self, service, payload):
        payload["lines"] = [
            {"product_name": "Bolts", "quantity": "1.001", "weight": "1.001"},
            {"product_name": "Nuts",  "quantity": "3",     "weight": "0.007"},
        ]
        shipment = service.create(payload)
        expected = sum(Decimal(l["quantity"]) * Decimal(l["weight"]) for l in shipment.lines)
        assert shipment.total_weight == expected == Decimal("1.023001")

    @pytest.mark.parametrize("field", ["quantity", "weight"])
    def test_line_beyond_three_places_rejected(self, service, payload, field):
        payload["lines"][0][field] = "0.0005"
        with pytest.raises(ValidationError) as exc_info:
            service.create(payload)
        assert f"lines[0].{field}" in exc_info.value.fields

    @pytest.mark.parametrize("value", [date(2026, 3, 2), "2026-03-02"])
    def test_plain_date_becomes_aware_midnight(self, service, payload, value):
        shipment = service.create(dict(payload, scheduled_date=value))
        assert shipment.scheduled_date == datetime(2026, 3, 2, tzinfo=dt_timezone.utc)

    @pytest.mark.parametrize("value", [42, ["2026-03-02"], "2026-13-45"])
    def test_bad_date_rejected(self, service, payload, value):
        with pytest.raises(ValidationError) as exc_info:
            service.create(dict(payload, estimated_delivery_date=value))
        assert "estimated_delivery_date" in exc_info.value.fields
        assert service.list() == []

    def test_unknown_field_rejected(self, service, payload):
        payload["colour"] = "blue"
        with pytest.raises(ValidationError):
            service.create(payload)

    @pytest.mark.parametrize("reference", ["", "   ", "EXP-"])
    def test_reference_generated_when_blank(self, service, payload, reference):
        payload["reference"] = reference
        shipment = service.create(payload)
        assert shipment.reference.startswith("EXP-")
        assert len(shipment.reference) == len("EXP-") + 14

    def test_reference_kept_when_given(self, service, payload):
        payload["reference"] = "EXP-CUSTOM-1"
        assert service.create(payload).reference == "EXP-CUSTOM-1"

    def test_tracking_requested(self, service, payload):
        shipment = service.create(payload, with_tracking=True)
        assert shipment.tracking_number.startswith("TRK")
        assert len(shipment.tracking_number) == 12
        assert shipment.tracking_number[3:].isdigit()

        events = service.tracking.events(shipment.id)
        assert len(events) == 1
        assert events[0].status == "registered"
        assert events[0].location_address == "Douala"

        aggregate = service.tracking.store.get_aggregate(shipment.id)
        assert aggregate.status == "registered"
        assert aggregate.progress == 10
        assert aggregate.tracking_number == shipment.tracking_number

    def test_supplied_tracking_number_logs_initial_event(self, service, payload):
        payload["tracking_number"] = "TRK000000001"
        shipment = service.create(payload)
        assert service.tracking.events(shipment.id)[0].tracking_number == "TRK000000001"

    def test_created_as_delivered_is_stamped(self, service, payload):
        payload["status"] = "delivered"
        shipment = service.create(payload)
        assert shipment.actual_delivery_date is not None

    def test_unknown_status_rejected(self, service, payload):
        payload["status"] = "lost_at_sea"
        with pytest.raises(ValidationError):
            service.create(payload)

    def test_registry_failure_leaves_nothing(self, service, registry, payload):
        with patch.object(registry, "put", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                service.create(payload)
        assert registry.list() == []

    def test_tracking_failure_discards_shipment(self, service, registry, payload):
        with patch.object(service.tracking, "append", side_effect=PersistenceError("down")):
            with pytest.raises(PersistenceError):
                service.create(payload, with_tracking=True)
        assert registry.list() == []

    def test_stored_copy_is_isolated(self, service, shipment):
        shipment.origin = "Tampered"
        assert service.get(shipment.id).origin == "Douala"


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — State Machine
# ═══════════════════════════════════════════════════════════════════════════════

ALLOWED = {
    ("draft", "confirmed"), ("draft", "cancelled"),
    ("confirmed", "in_transit"), ("confirmed", "delayed"), ("confirmed", "cancelled"),
    ("in_transit", "delivered"), ("in_transit", "delayed"), ("in_transit", "cancelled"),
    ("delayed", "in_transit"), ("delayed", "delivered"), ("delayed", "cancelled"),
}
STATUSES = ["draft", "confirmed", "in_transit", "delivered", "cancelled", "delayed"]


class TestTransitions:

    @pytest.mark.parametrize("current", STATUSES)
    @pytest.mark.parametrize("new", STATUSES)
    def test_state_machine_table(self, service, payload, current, new):
        payload["status"] = current
        shipment = service.create(payload)

        if current == new or (current, new) in ALLOWED:
            assert service.transition(shipment.id, new).status == new
        else:
            with pytest.raises(InvalidTransitionError):
                service.transition(shipment.id, new)
            assert service.get(shipment.id).status == current

    def test_delivered_stamps_actual_date(self, service, shipment):
        for status in ("confirmed", "in_transit", "delivered"):
            service.transition(shipment.id, status)
        stored = service.get(shipment.id)
        assert stored.status == "delivered"
        assert stored.actual_delivery_date is not None

    def test_terminal_retry_is_unchanged(self, service, shipment):
        for status in ("confirmed", "in_transit"):
            service.transition(shipment.id, status)
        first = service.transition(shipment.id, "delivered")
        again = service.transition(shipment.id, "delivered")
        assert again.actual_delivery_date == first.actual_delivery_date
        assert again.updated_at == first.updated_at

    def test_delivered_to_in_transit_rejected(self, service, payload):
        payload["status"] = "delivered"
        shipment = service.create(payload)
        with pytest.raises(InvalidTransitionError) as exc_info:
            service.transition(shipment.id, "in_transit")
        assert exc_info.value.entity_id == str(shipment.id)
        assert exc_info.value.operation == "transition"

    def test_unknown_status_rejected(self, service, shipment):
        with pytest.raises(ValidationError):
            service.transition(shipment.id, "teleported")

    def test_unknown_shipment(self, service):
        with pytest.raises(NotFoundError):
            service.transition("00000000-0000-0000-0000-000000000000", "confirmed")

    def test_transition_bumps_updated_at(self, service, shipment):
        updated = service.transition(shipment.id, "confirmed")
        assert updated.updated_at >= shipment.updated_at
        assert updated.created_at == shipment.created_at

    def test_transition_never_emits_tracking_events(self, service, payload):
        shipment = service.create(payload, with_tracking=True)
        service.transition(shipment.id, "confirmed")
        service.transition(shipment.id, "in_transit")
        assert len(service.tracking.events(shipment.id)) == 1


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Update / Delete
# ═══════════════════════════════════════════════════════════════════════════════

class TestShipmentUpdate:

    def test_lines_edit_recomputes_weight_and_price(self, service, shipment):
        updated = service.update(shipment.id, {
            "lines": [{"product_name": "Steel", "quantity": "4", "weight": "12.5"}],
            "base_price": "5",
        })
        assert updated.total_weight == Decimal("50.000")
        # 5 + 50×0.5
        assert updated.total_price == Decimal("30.00")
        assert service.get(shipment.id).total_weight == Decimal("50.000")

    def test_finalized_shipment_rejected(self, service, shipment):
        service.transition(shipment.id, "cancelled")
        with pytest.raises(ShipmentFinalizedError) as exc_info:
            service.update(shipment.id, {"notes": "too late"})
        assert isinstance(exc_info.value, InvalidTransitionError)

    def test_status_goes_through_transition(self, service, shipment):
        with pytest.raises(ValidationError):
            service.update(shipment.id, {"status": "confirmed"})

    def test_same_status_is_ignored(self, service, shipment):
        updated = service.update(shipment.id, {"status": "draft", "notes": "fragile"})
        assert updated.notes == "fragile"

    @pytest.mark.parametrize("field", ["id", "total_price", "created_at", "actual_delivery_date"])
    def test_derived_fields_rejected(self, service, shipment, field):
        with pytest.raises(ValidationError) as exc_info:
            service.update(shipment.id, {field: "x"})
        assert field in exc_info.value.fields

    def test_blank_reference_rejected(self, service, shipment):
        with pytest.raises(ValidationError):
            service.update(shipment.id, {"reference": ""})

    def test_unknown_shipment(self, service):
        with pytest.raises(NotFoundError):
            service.update("00000000-0000-0000-0000-000000000000", {"notes": "?"})


class TestShipmentDelete:

    def test_cascade_removes_tracking(self, service, store, payload):
        shipment = service.create(payload, with_tracking=True)
        service.tracking.append(shipment.id, "in_transit", location="Edéa")

        report = service.delete(shipment.id)

        assert report.events_deleted == 2
        assert report.aggregate_deleted is True
        assert report.warning is None
        assert store.events_for(shipment.id) == []
        with pytest.raises(NotFoundError):
            service.get(shipment.id)
        with pytest.raises(NotFoundError):
            store.get_aggregate(shipment.id)

    def test_cascade_failure_is_reported(self, service, store, shipment, caplog):
        with patch.object(store, "delete_for", side_effect=PersistenceError("timeout")):
            report = service.delete(shipment.id)

        assert report.warning is not None
        assert str(shipment.id) in report.warning
        assert "was not removed" in caplog.text
        with pytest.raises(NotFoundError):
            service.get(shipment.id)

    def test_unknown_shipment(self, service):
        with pytest.raises(NotFoundError):
            service.delete("00000000-0000-0000-0000-000000000000")

    def test_churn_leaves_no_shipment_locks(self, service, payload):
        for _ in range(50):
            shipment = service.create(payload, with_tracking=True)
            service.tracking.append(shipment.id, "in_transit")
            service.delete(shipment.id)
        assert len(service.tracking._locks) == 0


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Tracking Event Log
# ═══════════════════════════════════════════════════════════════════════════════

class TestTrackingEventLog:

    def test_append_defaults(self, service, shipment):
        event = service.tracking.append(shipment.id, "processing")
        assert event.sequence == 1
        assert event.is_notified is False
        assert event.timestamp is not None

    def test_append_accepts_any_sequence_of_facts(self, service, shipment):
        # Log records observations; it does not consult the shipment status
        for status in ("delivered", "registered", "lost", "returned"):
            service.tracking.append(shipment.id, status)
        assert [e.sequence for e in service.tracking.events(shipment.id)] == [1, 2, 3, 4]

    def test_status_required(self, service, shipment):
        with pytest.raises(ValidationError):
            service.tracking.append(shipment.id, "")

    def test_unknown_status_rejected(self, service, shipment):
        with pytest.raises(ValidationError):
            service.tracking.append(shipment.id, "abducted")

    def test_shipment_id_required(self, service):
        with pytest.raises(ValidationError):
            service.tracking.append(None, "registered")

    def test_malformed_shipment_id_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.tracking.append("SHP-42", "registered")
        assert exc_info.value.fields == {"shipment_id": "Not a valid id."}
        assert service.tracking.store.shipment_ids() == []

    def test_string_and_uuid_ids_share_a_log(self, service, shipment):
        service.tracking.append(str(shipment.id), "registered")
        service.tracking.append(shipment.id, "processing")
        assert [e.sequence for e in service.tracking.events(shipment.id)] == [1, 2]

    def test_iso_timestamp_and_coordinates(self, service, shipment):
        event = service.tracking.append(
            shipment.id, "in_transit", timestamp="2026-03-02T10:15:00+00:00",
            location={"address": "Edéa", "latitude": "3.8", "longitude": 10.13},
        )
        assert event.timestamp == datetime(2026, 3, 2, 10, 15, tzinfo=dt_timezone.utc)
        assert event.location.address == "Edéa"
        assert event.location.latitude == Decimal("3.8")

    def test_bad_timestamp_rejected(self, service, shipment):
        with pytest.raises(ValidationError):
            service.tracking.append(shipment.id, "in_transit", timestamp="yesterday")

    def test_events_are_never_rewritten(self, service, shipment):
        service.tracking.append(shipment.id, "registered", timestamp=T0)
        first = service.tracking.events(shipment.id)[0]
        service.tracking.append(shipment.id, "in_transit", timestamp=T1)
        assert service.tracking.events(shipment.id)[0].status == first.status


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Status Projection
# ═══════════════════════════════════════════════════════════════════════════════

class TestStatusProjector:

    @pytest.mark.parametrize("order", [
        ("registered", "in_transit", "delivered"),
        ("delivered", "registered", "in_transit"),
        ("in_transit", "delivered", "registered"),
    ])
    def test_delivered_in_any_submission_order(self, service, shipment, order):
        stamps = {"registered": T0, "in_transit": T1, "delivered": T2}
        for status in order:
            service.tracking.append(shipment.id, status, timestamp=stamps[status],
                                    location=f"{status} hub")

        aggregate = service.projector.project(shipment.id)
        assert aggregate.status == "delivered"
        assert aggregate.current_location == "delivered hub"
        assert aggregate.last_updated == T2
        assert aggregate.progress == 100

        stored = service.get(shipment.id)
        assert stored.status == "delivered"
        assert stored.actual_delivery_date is not None

    def test_timestamp_tie_broken_by_insertion(self, service, shipment):
        service.tracking.append(shipment.id, "delayed", timestamp=T1, location="Gate 4")
        service.tracking.append(shipment.id, "in_transit", timestamp=T1, location="Gate 5")
        aggregate = service.tracking.store.get_aggregate(shipment.id)
        assert aggregate.status == "in_transit"
        assert aggregate.current_location == "Gate 5"

    def test_late_older_event_does_not_win(self, service, shipment):
        service.tracking.append(shipment.id, "out_for_delivery", timestamp=T2)
        service.tracking.append(shipment.id, "registered", timestamp=T0)
        aggregate = service.tracking.store.get_aggregate(shipment.id)
        assert aggregate.status == "out_for_delivery"
        assert aggregate.event_count == 2

    def test_tracking_number_carried_from_earlier_events(self, service, payload):
        shipment = service.create(payload, with_tracking=True)
        service.tracking.append(shipment.id, "in_transit")
        aggregate = service.tracking.store.get_aggregate(shipment.id)
        assert aggregate.tracking_number == shipment.tracking_number
        assert service.tracking.store.find_aggregate(shipment.tracking_number).status == "in_transit"

    def test_project_without_events(self, service, shipment):
        with pytest.raises(NotFoundError):
            service.projector.project(shipment.id)

    def test_replay_matches_and_does_not_notify(self, service, shipment):
        service.tracking.append(shipment.id, "registered", timestamp=T0)
        service.tracking.append(shipment.id, "in_transit", timestamp=T1)
        listener = MagicMock()
        service.projector.subscribe(listener)

        rebuilt = service.projector.replay(shipment.id)

        assert rebuilt.status == "in_transit"
        listener.assert_not_called()

    def test_listeners_receive_every_projection(self, service, shipment):
        listener = MagicMock()
        service.projector.subscribe(listener)
        service.tracking.append(shipment.id, "registered")
        service.tracking.append(shipment.id, "processing")
        assert listener.call_count == 2
        assert listener.call_args[0][0].status == "processing"

        service.projector.unsubscribe(listener)
        service.tracking.append(shipment.id, "in_transit")
        assert listener.call_count == 2

    def test_delivered_event_for_cancelled_shipment_is_ignored(self, service, shipment, caplog):
        service.transition(shipment.id, "cancelled")
        service.tracking.append(shipment.id, "delivered")
        assert service.get(shipment.id).status == "cancelled"
        assert "not applied" in caplog.text

    def test_delivered_event_for_unknown_shipment_is_logged(self, service, caplog):
        service.tracking.append("11111111-1111-1111-1111-111111111111", "delivered")
        assert "not applied" in caplog.text

    def test_registry_failure_during_sync_propagates(self, service, registry, shipment):
        with patch.object(registry, "put", side_effect=PersistenceError("down")):
            with pytest.raises(PersistenceError):
                service.tracking.append(shipment.id, "delivered")
        # The in-memory store has no rollback, so the observation stays logged
        assert [e.status for e in service.tracking.events(shipment.id)] == ["delivered"]
        assert service.get(shipment.id).status == "draft"


# ═══════════════════════════════════════════════════════════════════════════════
# CONCURRENCY — Same-shipment appends are serialised
# ═══════════════════════════════════════════════════════════════════════════════

class TestConcurrentAppends:

    def test_parallel_appends_keep_log_and_aggregate_consistent(self, service, payload):
        shipments = [service.create(payload) for _ in range(3)]
        per_thread = 20

        def worker(shipment_id, offset):
            for i in range(per_thread):
                service.tracking.append(shipment_id, "in_transit",
                                        timestamp=T0 + timedelta(minutes=offset * 100 + i))

        threads = [threading.Thread(target=worker, args=(s.id, n))
                   for n, s in enumerate(shipments * 2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for shipment in shipments:
            events = service.tracking.events(shipment.id)
            assert sorted(e.sequence for e in events) == list(range(1, 2 * per_thread + 1))
            aggregate = service.tracking.store.get_aggregate(shipment.id)
            assert aggregate.event_count == 2 * per_thread
            assert aggregate.last_updated == max(e.timestamp for e in events)


# ═══════════════════════════════════════════════════════════════════════════════
# UNIT TESTS — Overdue sweep
# ═══════════════════════════════════════════════════════════════════════════════

class TestOverdueSweep:

    def test_overdue_shipments_delayed(self, service, payload):
        late = service.create(dict(payload, estimated_delivery_date=T0))
        on_time = service.create(dict(payload, estimated_delivery_date=T2 + timedelta(days=30)))
        draft = service.create(dict(payload, estimated_delivery_date=T0))
        for s in (late, on_time):
            service.transition(s.id, "confirmed")

        delayed = service.sweep_overdue(now=T2)

        assert [s.id for s in delayed] == [late.id]
        assert service.get(late.id).status == "delayed"
        assert service.get(on_time.id).status == "confirmed"
        assert service.get(draft.id).status == "draft"

    def test_no_eta_is_never_overdue(self, service, shipment):
        service.transition(shipment.id, "confirmed")
        assert service.sweep_overdue(now=T2) == []
