"""WebSocket fan-out of assessment and template status transitions."""

from __future__ import annotations

import logging

from fastapi import WebSocket

from fieldscribe.schemas.ws_messages import StatusMessage

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Subscribers per channel; a channel is an assessment or template id."""

    def __init__(self):
        self._channels: dict[str, list[WebSocket]] = {}

    async def connect(self, channel_id: str, websocket: WebSocket):
        await websocket.accept()
        self._channels.setdefault(channel_id, []).append(websocket)

    def disconnect(self, channel_id: str, websocket: WebSocket):
        subscribers = self._channels.get(channel_id, [])
        if websocket in subscribers:
            subscribers.remove(websocket)
        if not subscribers:
            self._channels.pop(channel_id, None)

    def subscriber_count(self, channel_id: str) -> int:
        return len(self._channels.get(channel_id, []))

    async def broadcast(self, channel_id: str, message: dict):
        subscribers = self._channels.get(channel_id, [])
        dead = []
        for ws in list(subscribers):
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping dead subscriber on {channel_id}: {e}")
                dead.append(ws)
        for ws in dead:
            self.disconnect(channel_id, ws)

    async def publish_status(
        self, channel_id: str, kind: str, status: str, error_message: str | None = None,
    ):
        """Broadcast a committed status transition. kind is "assessment" or "template"."""
        msg = StatusMessage(
            event="status_update",
            data={"status": status, "error_message": error_message},
            **{f"{kind}_id": channel_id},
        )
        await self.broadcast(channel_id, msg.model_dump())


ws_manager = ConnectionManager()
