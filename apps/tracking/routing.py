"""WebSocket URL routing for tracking."""
from django.urls import re_path
from .consumers import TrackingConsumer

websocket_urlpatterns = [
    re_path(r"^ws/tracking/(?P<shipment_id>[0-9a-fA-F\-]{36})/$", TrackingConsumer.as_asgi()),
]
