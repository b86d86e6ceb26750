"""
Tracking models.

TrackingEvent is an immutable, append-only fact. TrackingAggregate is the
overwritable "latest known state" cache, reproducible by replaying events.
Both point at the shipment by id only; they do not own or get owned by it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db import models
from django.utils import timezone


class PackageStatus(models.TextChoices):
    REGISTERED       = "registered",       "Registered"
    PROCESSING       = "processing",       "Processing"
    IN_TRANSIT       = "in_transit",       "In Transit"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for Delivery"
    DELIVERED        = "delivered",        "Delivered"
    DELAYED          = "delayed",          "Delayed"
    EXCEPTION        = "exception",        "Exception"
    RETURNED         = "returned",         "Returned"
    LOST             = "lost",             "Lost"


# Delivery progress shown to customers, by latest status
PROGRESS = {
    PackageStatus.REGISTERED:       10,
    PackageStatus.PROCESSING:       25,
    PackageStatus.IN_TRANSIT:       50,
    PackageStatus.OUT_FOR_DELIVERY: 80,
    PackageStatus.DELIVERED:        100,
    PackageStatus.DELAYED:          50,
    PackageStatus.EXCEPTION:        50,
    PackageStatus.RETURNED:         90,
    PackageStatus.LOST:             100,
}


@dataclass(frozen=True)
class GeoLocation:
    address:   str = ""
    latitude:  Optional[Decimal] = None
    longitude: Optional[Decimal] = None


class TrackingEvent(models.Model):
    """Immutable observation of a shipment's status and location."""

    shipment_id     = models.UUIDField(db_index=True)
    tracking_number = models.CharField(max_length=40, blank=True, db_index=True)  # a.k.a. package id
    sequence        = models.PositiveIntegerField()
    timestamp       = models.DateTimeField(default=timezone.now)
    status          = models.CharField(max_length=20, choices=PackageStatus.choices)
    location_address = models.CharField(max_length=255, blank=True)
    latitude        = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude       = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    description     = models.CharField(max_length=255, blank=True)
    is_notified     = models.BooleanField(default=False)
    recorded_at     = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["timestamp", "sequence"]
        constraints = [
            models.UniqueConstraint(fields=["shipment_id", "sequence"],
                                    name="tracking_event_sequence_unique"),
        ]

    def __str__(self):
        return f"{self.shipment_id}#{self.sequence} {self.status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Tracking events are immutable.")
        super().save(*args, **kwargs)

    @property
    def location(self):
        return GeoLocation(self.location_address, self.latitude, self.longitude)

    @property
    def sort_key(self):
        return (self.timestamp, self.sequence)


class TrackingAggregate(models.Model):
    """Latest-known state of a shipment, derived from its events."""

    shipment_id      = models.UUIDField(primary_key=True)
    tracking_number  = models.CharField(max_length=40, blank=True, db_index=True)
    status           = models.CharField(max_length=20, choices=PackageStatus.choices)
    current_location = models.CharField(max_length=255, blank=True)
    latitude         = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude        = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    progress         = models.PositiveSmallIntegerField(default=0)
    event_count      = models.PositiveIntegerField(default=0)
    last_updated     = models.DateTimeField()

    def __str__(self):
        return f"{self.shipment_id} [{self.status}]"
