from django.contrib import admin
from .models import TrackingAggregate, TrackingEvent


@admin.register(TrackingEvent)
class TrackingEventAdmin(admin.ModelAdmin):
    list_display  = ("shipment_id", "sequence", "status", "location_address", "timestamp")
    list_filter   = ("status",)
    search_fields = ("tracking_number", "shipment_id")

    # Append-only: events are written through the tracking log
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(TrackingAggregate)
class TrackingAggregateAdmin(admin.ModelAdmin):
    list_display    = ("shipment_id", "tracking_number", "status", "current_location",
                       "progress", "last_updated")
    list_filter     = ("status",)
    readonly_fields = [f.name for f in TrackingAggregate._meta.fields]
