"""
Shipment model.
A Shipment moves through a bounded state machine (see service.TRANSITIONS);
its weight and price are derived, never authored.
"""

import uuid
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Shipment(models.Model):
    """Cargo moved from origin to destination."""

    class Type(models.TextChoices):
        IMPORT        = "import",        "Import"
        EXPORT        = "export",        "Export"
        LOCAL         = "local",         "Local"
        INTERNATIONAL = "international", "International"

    class Status(models.TextChoices):
        DRAFT       = "draft",      "Draft"
        CONFIRMED   = "confirmed",  "Confirmed"
        IN_TRANSIT  = "in_transit", "In Transit"
        DELIVERED   = "delivered",  "Delivered"
        CANCELLED   = "cancelled",  "Cancelled"
        DELAYED     = "delayed",    "Delayed"

    class Zone(models.TextChoices):
        LOCAL         = "local",         "Local"
        NATIONAL      = "national",      "National"
        EUROPE        = "europe",        "Europe"
        INTERNATIONAL = "international", "International"

    class ServiceLevel(models.TextChoices):
        ECONOMIC = "economic", "Economic"
        STANDARD = "standard", "Standard"
        EXPRESS  = "express",  "Express"
        PRIORITY = "priority", "Priority"

    id              = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reference       = models.CharField(max_length=40, db_index=True)
    tracking_number = models.CharField(max_length=40, blank=True, db_index=True)
    shipment_type   = models.CharField(max_length=15, choices=Type.choices, default=Type.LOCAL)
    status          = models.CharField(max_length=12, choices=Status.choices, default=Status.DRAFT)

    # Parties / route (reference data is resolved elsewhere; ids kept opaque)
    customer     = models.CharField(max_length=120, blank=True)
    carrier      = models.CharField(max_length=64, blank=True)
    carrier_name = models.CharField(max_length=120, blank=True)
    origin       = models.CharField(max_length=255)
    destination  = models.CharField(max_length=255)

    # Cargo: [{"product_name": str, "quantity": "2", "weight": "10.000"}, ...]
    lines        = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    total_weight = models.DecimalField(max_digits=18, decimal_places=6, default=0)

    # Schedule
    scheduled_date          = models.DateTimeField(null=True, blank=True)
    estimated_delivery_date = models.DateTimeField(null=True, blank=True)
    actual_delivery_date    = models.DateTimeField(null=True, blank=True)

    # Tariff inputs; total_price is derived from them
    base_price    = models.DecimalField(max_digits=12, decimal_places=2, default=0,
                                        validators=[MinValueValidator(0)])
    distance_km   = models.DecimalField(max_digits=10, decimal_places=2, default=0,
                                        validators=[MinValueValidator(0)])
    extra_fees    = models.DecimalField(max_digits=12, decimal_places=2, default=0,
                                        validators=[MinValueValidator(0)])
    customs_fees  = models.DecimalField(max_digits=12, decimal_places=2, default=0,
                                        validators=[MinValueValidator(0)])
    tariff_zone   = models.CharField(max_length=15, choices=Zone.choices, default=Zone.NATIONAL)
    service_level = models.CharField(max_length=10, choices=ServiceLevel.choices,
                                     default=ServiceLevel.STANDARD)
    total_price   = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    notes      = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        indexes  = [
            models.Index(fields=["status"], name="shipments_s_status_3f1c2a_idx"),
            models.Index(fields=["created_at"], name="shipments_s_created_8d0e4b_idx"),
        ]

    def __str__(self):
        return f"{self.reference} [{self.status}]"

    @property
    def is_finalized(self):
        return self.status in (self.Status.DELIVERED, self.Status.CANCELLED)
