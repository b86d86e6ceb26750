"""
Live tracking over WebSocket.

Clients subscribe to ws/tracking/<shipment_id>/ and receive the tracking
aggregate on connect and after every projection. broadcast_aggregate is a
StatusProjector listener; it never blocks or fails an append.
"""

import logging

from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from channels.layers import get_channel_layer

logger = logging.getLogger("freightdesk.tracking")


def group_name(shipment_id):
    return f"tracking_{shipment_id}"


def aggregate_payload(aggregate):
    return {
        "shipment_id":      str(aggregate.shipment_id),
        "tracking_number":  aggregate.tracking_number,
        "status":           str(aggregate.status),
        "current_location": aggregate.current_location,
        "latitude":         str(aggregate.latitude) if aggregate.latitude is not None else None,
        "longitude":        str(aggregate.longitude) if aggregate.longitude is not None else None,
        "progress":         aggregate.progress,
        "last_updated":     aggregate.last_updated.isoformat(),
    }


def broadcast_aggregate(aggregate):
    """Push a fresh aggregate to subscribers. Failures are logged, not raised."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(
            group_name(aggregate.shipment_id),
            {"type": "aggregate_update", "aggregate": aggregate_payload(aggregate)},
        )
    except Exception as exc:
        logger.warning("Broadcast failed for %s: %s", aggregate.shipment_id, exc)


class TrackingConsumer(AsyncJsonWebsocketConsumer):
    """WebSocket consumer for live shipment tracking (read-only)."""

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4001)
            return

        self.shipment_id = self.scope["url_route"]["kwargs"]["shipment_id"]
        self.group_name  = group_name(self.shipment_id)

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info("WS connected: %s", self.shipment_id)

        current = await self._current_aggregate(self.shipment_id)
        if current is not None:
            await self.send_json(current)

    async def disconnect(self, code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.info("WS disconnected: %s (code=%s)", getattr(self, "shipment_id", "?"), code)

    async def receive_json(self, content, **kwargs):
        # Events are appended through the REST API, not over the socket
        await self.send_json({"error": "read-only channel"})

    async def aggregate_update(self, event):
        await self.send_json(event["aggregate"])

    @database_sync_to_async
    def _current_aggregate(self, shipment_id):
        from apps.shipments.exceptions import NotFoundError
        from apps.shipments.api import get_tracking_aggregate
        try:
            return aggregate_payload(get_tracking_aggregate(shipment_id))
        except NotFoundError:
            return None
