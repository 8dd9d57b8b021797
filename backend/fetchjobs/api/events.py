from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fetchjobs.utils.time import utc_now
from fetchjobs.websocket.manager import manager

router = APIRouter()


@router.websocket("/events")
async def events(websocket: WebSocket) -> None:
    await manager.connect(websocket)
    await websocket.send_json({"type": "connected", "timestamp": utc_now()})
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
