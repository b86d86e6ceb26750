"""Shipment API views. Thin adapters over apps.shipments.api."""

import logging
from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema
from django_filters.rest_framework import DjangoFilterBackend

from .models import Shipment
from .tariff import TariffCalculator
from . import api
from . import serializers as sz

logger = logging.getLogger("freightdesk.api")


# ── POST /api/shipments/create/ ───────────────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Create a shipment",
               request=sz.ShipmentWriteSerializer, responses=sz.ShipmentDetailSerializer)
class ShipmentCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = sz.ShipmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        track = data.pop("track", False)
        shipment = api.create_shipment(data, with_tracking=track)
        return Response(sz.ShipmentDetailSerializer(shipment).data, status=status.HTTP_201_CREATED)


# ── GET /api/shipments/ ────────────────────────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="List shipments")
class ShipmentListView(generics.ListAPIView):
    serializer_class   = sz.ShipmentDetailSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends    = [DjangoFilterBackend]
    filterset_fields   = ["status", "shipment_type", "carrier", "customer"]
    queryset           = Shipment.objects.all()


# ── GET | PATCH | DELETE /api/shipments/{id}/ ────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Retrieve, edit or delete a shipment",
               responses=sz.ShipmentDetailSerializer)
class ShipmentDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        shipment = api.get_service().get(pk)
        return Response(sz.ShipmentDetailSerializer(shipment).data)

    @extend_schema(request=sz.ShipmentWriteSerializer)
    def patch(self, request, pk):
        ser = sz.ShipmentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        changes = dict(ser.validated_data)
        changes.pop("track", None)
        shipment = api.update_shipment(pk, changes)
        return Response(sz.ShipmentDetailSerializer(shipment).data)

    def delete(self, request, pk):
        report = api.delete_shipment(pk)
        if report.warning:
            return Response({
                "shipment_id": report.shipment_id,
                "warning":     report.warning,
            }, status=status.HTTP_200_OK)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ── POST /api/shipments/{id}/transition/ ──────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Move a shipment to a new status",
               request=sz.TransitionSerializer, responses=sz.ShipmentDetailSerializer)
class ShipmentTransitionView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        ser = sz.TransitionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shipment = api.transition_shipment(pk, ser.validated_data["status"])
        return Response(sz.ShipmentDetailSerializer(shipment).data)


# ── POST /api/tariff/estimate/ ────────────────────────────────────────────────
@extend_schema(tags=["Shipments"], summary="Estimate tariff before creating a shipment",
               request=sz.TariffEstimateSerializer)
class TariffEstimateView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    calculator = TariffCalculator

    def post(self, request):
        ser = sz.TariffEstimateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data

        result = self.calculator().quote(
            d["base_price"], d["weight"], d["distance_km"], d["extra_fees"],
            zone=d["tariff_zone"], service_level=d["service_level"],
            customs_fees=d["customs_fees"],
        )
        return Response({k: str(v) for k, v in result.items()})
