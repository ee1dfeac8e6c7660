from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fieldscribe.services.ws_manager import ws_manager

router = APIRouter(tags=["websocket"])


@router.websocket("/api/ws/{channel_id}")
async def websocket_endpoint(websocket: WebSocket, channel_id: str):
    """Subscribe to status updates for one assessment or template id."""
    await ws_manager.connect(channel_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(channel_id, websocket)
