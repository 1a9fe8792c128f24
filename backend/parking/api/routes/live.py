"""Live channel: WebSocket observers receive full snapshots on connect and after every change."""
import logging

from fastapi import APIRouter, WebSocket

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def live_updates(websocket: WebSocket):
    notifier = websocket.app.state.notifier
    await notifier.connect(websocket)
    try:
        # Inbound frames (text or binary) are ignored; the loop only waits for the disconnect
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("Live observer closed (code=%s)", message.get("code"))
                break
    finally:
        notifier.disconnect(websocket)
