"""Tracking REST views — event log per shipment and the derived aggregate."""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.shipments import api
from . import serializers as sz


@extend_schema(tags=["Tracking"], summary="List or append tracking events for a shipment")
class ShipmentEventsView(APIView):
    """GET|POST /api/shipments/{id}/events/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        service = api.get_service()
        service.get(pk)  # 404 for unknown shipments
        events = service.tracking.events(pk)
        return Response(sz.TrackingEventSerializer(events, many=True).data)

    @extend_schema(request=sz.TrackingEventCreateSerializer, responses=sz.TrackingEventSerializer)
    def post(self, request, pk):
        ser = sz.TrackingEventCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = dict(ser.validated_data)
        location = dict(d.pop("location")) if "location" in d else None
        api.get_service().get(pk)
        event = api.append_tracking_event(shipment_id=pk, location=location, **d)
        return Response(sz.TrackingEventSerializer(event).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Tracking"], summary="Current tracking state of a shipment")
class TrackingAggregateView(APIView):
    """GET /api/tracking/{shipment_id}/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, shipment_id):
        aggregate = api.get_tracking_aggregate(shipment_id)
        return Response(sz.TrackingAggregateSerializer(aggregate).data)


@extend_schema(tags=["Tracking"], summary="Look up tracking state by tracking number")
class TrackingLookupView(APIView):
    """GET /api/tracking/number/{tracking_number}/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, tracking_number):
        aggregate = api.find_tracking_aggregate(tracking_number)
        return Response(sz.TrackingAggregateSerializer(aggregate).data)
