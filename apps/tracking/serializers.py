"""Tracking serializers."""

from rest_framework import serializers
from .models import PackageStatus, TrackingAggregate, TrackingEvent


class GeoLocationSerializer(serializers.Serializer):
    address   = serializers.CharField(max_length=255, allow_blank=True, required=False, default="")
    latitude  = serializers.DecimalField(max_digits=9, decimal_places=6, required=False,
                                         allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, required=False,
                                         allow_null=True, min_value=-180, max_value=180)


class TrackingEventCreateSerializer(serializers.Serializer):
    status          = serializers.ChoiceField(choices=PackageStatus.choices)
    timestamp       = serializers.DateTimeField(required=False, allow_null=True)
    location        = GeoLocationSerializer(required=False)
    description     = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    tracking_number = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    is_notified     = serializers.BooleanField(required=False, default=False)


class TrackingEventSerializer(serializers.ModelSerializer):
    location = serializers.SerializerMethodField()

    class Meta:
        model  = TrackingEvent
        fields = ["shipment_id", "tracking_number", "sequence", "timestamp", "status",
                  "location", "description", "is_notified"]

    def get_location(self, obj):
        return {
            "address":   obj.location_address,
            "latitude":  str(obj.latitude) if obj.latitude is not None else None,
            "longitude": str(obj.longitude) if obj.longitude is not None else None,
        }


class TrackingAggregateSerializer(serializers.ModelSerializer):
    class Meta:
        model  = TrackingAggregate
        fields = ["shipment_id", "tracking_number", "status", "current_location",
                  "latitude", "longitude", "progress", "event_count", "last_updated"]
