"""Freight settings with built-in defaults (override through settings.FREIGHT)."""

from django.conf import settings

DEFAULTS = {
    "REFERENCE_PREFIX":      "EXP-",
    "TRACKING_PREFIX":       "TRK",
    "TRACKING_DIGITS":       9,
    "WEIGHT_RATE":           "0.50",
    "DISTANCE_RATE":         "0.10",
    "DEFAULT_ZONE":          "national",
    "DEFAULT_SERVICE_LEVEL": "standard",
    "OVERDUE_GRACE_HOURS":   0,
}


def freight_setting(name):
    overrides = getattr(settings, "FREIGHT", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
