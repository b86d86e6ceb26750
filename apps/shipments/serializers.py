"""Shipment serializers."""

from rest_framework import serializers
from .models import Shipment


class ShipmentLineSerializer(serializers.Serializer):
    product_name = serializers.CharField(max_length=120, allow_blank=True, required=False, default="")
    quantity     = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)
    weight       = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)


class ShipmentWriteSerializer(serializers.Serializer):
    """Input for create / partial update. Derived fields are not accepted."""

    reference       = serializers.CharField(max_length=40, required=False, allow_blank=True)
    tracking_number = serializers.CharField(max_length=40, required=False, allow_blank=True)
    shipment_type   = serializers.ChoiceField(choices=Shipment.Type.choices, required=False)
    status          = serializers.ChoiceField(choices=Shipment.Status.choices, required=False)
    customer        = serializers.CharField(max_length=120, required=False, allow_blank=True)
    carrier         = serializers.CharField(max_length=64, required=False, allow_blank=True)
    carrier_name    = serializers.CharField(max_length=120, required=False, allow_blank=True)
    origin          = serializers.CharField(max_length=255)
    destination     = serializers.CharField(max_length=255)
    lines           = ShipmentLineSerializer(many=True, required=False)
    scheduled_date          = serializers.DateTimeField(required=False, allow_null=True)
    estimated_delivery_date = serializers.DateTimeField(required=False, allow_null=True)
    base_price    = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    distance_km   = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    extra_fees    = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    customs_fees  = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    tariff_zone   = serializers.ChoiceField(choices=Shipment.Zone.choices, required=False)
    service_level = serializers.ChoiceField(choices=Shipment.ServiceLevel.choices, required=False)
    notes         = serializers.CharField(required=False, allow_blank=True)
    track         = serializers.BooleanField(required=False, default=False, write_only=True)

    def validate(self, data):
        for field in ("origin", "destination"):
            if field in data and not data[field].strip():
                raise serializers.ValidationError({field: "This field may not be blank."})
        if "lines" in data:
            data["lines"] = [dict(line) for line in data["lines"]]
        return data


class ShipmentDetailSerializer(serializers.ModelSerializer):
    lines = ShipmentLineSerializer(many=True, read_only=True)

    class Meta:
        model  = Shipment
        fields = [
            "id", "reference", "tracking_number", "shipment_type", "status",
            "customer", "carrier", "carrier_name", "origin", "destination",
            "lines", "total_weight",
            "scheduled_date", "estimated_delivery_date", "actual_delivery_date",
            "base_price", "distance_km", "extra_fees", "customs_fees",
            "tariff_zone", "service_level", "total_price",
            "notes", "created_at", "updated_at",
        ]
        read_only_fields = fields


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Shipment.Status.choices)


class TariffEstimateSerializer(serializers.Serializer):
    base_price    = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    weight        = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=0)
    distance_km   = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    extra_fees    = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    customs_fees  = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    tariff_zone   = serializers.ChoiceField(choices=Shipment.Zone.choices, default=Shipment.Zone.NATIONAL)
    service_level = serializers.ChoiceField(choices=Shipment.ServiceLevel.choices,
                                            default=Shipment.ServiceLevel.STANDARD)
