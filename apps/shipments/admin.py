from django.contrib import admin
from .models import Shipment


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display  = ("reference", "tracking_number", "shipment_type", "status", "origin",
                     "destination", "total_weight", "total_price", "created_at")
    list_filter   = ("status", "shipment_type", "tariff_zone")
    search_fields = ("reference", "tracking_number", "customer", "carrier_name")
    readonly_fields = ("id", "total_weight", "total_price", "actual_delivery_date",
                       "created_at", "updated_at")
    ordering      = ("-created_at",)
