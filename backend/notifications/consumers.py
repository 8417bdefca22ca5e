"""Dispatch board WebSocket consumer."""

import logging
from typing import Any, Dict, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .dispatcher import board_group_name

logger = logging.getLogger(__name__)


class OfferBoardConsumer(AsyncJsonWebsocketConsumer):
    """
    Pushes offer events for the connected user's tenant.

    Clients connect to ws/offers/?token=<access token> and receive
    ``{"type": "offer_event", "event": {...}}`` messages.
    """

    async def connect(self):
        self.user = self.scope["user"]
        self.joined_groups: Set[str] = set()

        if self.user.is_anonymous or not getattr(self.user, "tenant_id", None):
            await self.close()
            return

        self.tenant_group = board_group_name(self.user.tenant_id)
        await self._join_group(self.tenant_group)

        await self.accept()
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user.id,
            "tenant_id": self.user.tenant_id,
        })

    async def disconnect(self, close_code):
        for group in list(self.joined_groups):
            await self._leave_group(group)

    async def receive_json(self, data: Dict[str, Any]):
        msg_type = data.get("type")
        if msg_type == "ping":
            await self.send_json({"type": "pong"})
            return
        await self.send_json({
            "type": "error",
            "message": f"Unknown message type: {msg_type}" if msg_type else "Message type is required",
        })

    # ---------------------- Group Management Helpers ----------------------

    async def _join_group(self, group_name: str):
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.joined_groups.add(group_name)

    async def _leave_group(self, group_name: str):
        await self.channel_layer.group_discard(group_name, self.channel_name)
        self.joined_groups.discard(group_name)

    # ---------------------- Server Events ----------------------

    async def offer_event(self, event):
        """Sent by notifications.dispatcher for every committed offer change."""
        await self.send_json({
            "type": "offer_event",
            "event": event.get("event"),
        })
