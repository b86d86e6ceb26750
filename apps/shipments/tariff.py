"""
TariffCalculator — deterministic, side-effect-free freight pricing.

    total = base + weight × Rw + distance × Rd + extra_fees

price() applies the configured national rates; quote() applies the zone rate
table and the service-level multiplier and returns a breakdown.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from apps.shipments.conf import freight_setting
from apps.shipments.exceptions import ValidationError

logger = logging.getLogger("freightdesk.tariff")

CENT       = Decimal("0.01")
# Twelve integer digits, the widest money column on Shipment
MAX_AMOUNT = Decimal("1e12")


def to_amount(value, field):
    """Coerce a non-negative numeric input to Decimal or raise ValidationError."""
    if value is None or value == "":
        value = 0
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.", fields={field: "Not a number."})
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number.", fields={field: "Not a number."})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number.", fields={field: "Not finite."})
    if amount < 0:
        raise ValidationError(f"{field} must not be negative.", fields={field: "Negative value."})
    if amount >= MAX_AMOUNT:
        raise ValidationError(f"{field} must be below {MAX_AMOUNT:,.0f}.",
                              fields={field: "Too large."})
    return amount


def _money(value):
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class TariffCalculator:
    """
    Rule-based tariff engine.
    Per-kg and per-km rates vary by zone; the service level scales the sum.
    """

    WEIGHT_RATES = {
        "local":         Decimal("0.20"),
        "national":      Decimal("0.50"),
        "europe":        Decimal("1.20"),
        "international": Decimal("2.50"),
    }
    DISTANCE_RATES = {
        "local":         Decimal("0.05"),
        "national":      Decimal("0.10"),
        "europe":        Decimal("0.20"),
        "international": Decimal("0.30"),
    }
    SERVICE_MULTIPLIERS = {
        "economic": Decimal("0.8"),
        "standard": Decimal("1.0"),
        "express":  Decimal("1.5"),
        "priority": Decimal("2.0"),
    }

    def __init__(self, weight_rate=None, distance_rate=None):
        self.weight_rate   = to_amount(
            weight_rate if weight_rate is not None else freight_setting("WEIGHT_RATE"), "weight_rate")
        self.distance_rate = to_amount(
            distance_rate if distance_rate is not None else freight_setting("DISTANCE_RATE"),
            "distance_rate")

    def price(self, base_price, total_weight, distance_km, extra_fees=0) -> Decimal:
        base     = to_amount(base_price, "base_price")
        weight   = to_amount(total_weight, "total_weight")
        distance = to_amount(distance_km, "distance_km")
        extra    = to_amount(extra_fees, "extra_fees")
        return _money(base + weight * self.weight_rate + distance * self.distance_rate + extra)

    def quote(self, base_price, total_weight, distance_km, extra_fees=0,
              zone=None, service_level=None, customs_fees=0) -> dict:
        zone          = zone or freight_setting("DEFAULT_ZONE")
        service_level = service_level or freight_setting("DEFAULT_SERVICE_LEVEL")
        if zone not in self.WEIGHT_RATES:
            raise ValidationError(f"Unknown tariff zone '{zone}'.", fields={"tariff_zone": zone})
        if service_level not in self.SERVICE_MULTIPLIERS:
            raise ValidationError(f"Unknown service level '{service_level}'.",
                                  fields={"service_level": service_level})

        base     = to_amount(base_price, "base_price")
        weight   = to_amount(total_weight, "total_weight")
        distance = to_amount(distance_km, "distance_km")
        extra    = to_amount(extra_fees, "extra_fees")
        customs  = to_amount(customs_fees, "customs_fees")

        # National rates follow the configured calculator rates
        if zone == "national":
            weight_rate, distance_rate = self.weight_rate, self.distance_rate
        else:
            weight_rate, distance_rate = self.WEIGHT_RATES[zone], self.DISTANCE_RATES[zone]

        weight_price   = weight * weight_rate
        distance_price = distance * distance_rate
        multiplier     = self.SERVICE_MULTIPLIERS[service_level]
        total          = (base + weight_price + distance_price + extra + customs) * multiplier

        return {
            "base_price":     _money(base),
            "weight_price":   _money(weight_price),
            "distance_price": _money(distance_price),
            "extra_fees":     _money(extra),
            "customs_fees":   _money(customs),
            "multiplier":     multiplier,
            "total_price":    _money(total),
        }


def compute_tariff(base_price, weight, distance, extra_fees=0) -> Decimal:
    """Price with the configured default rates."""
    return TariffCalculator().price(base_price, weight, distance, extra_fees)
