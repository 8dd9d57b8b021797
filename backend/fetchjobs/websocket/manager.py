from typing import Any, Dict, Optional

from fastapi import WebSocket

from fetchjobs.core.logging import logger
from fetchjobs.utils.time import utc_now


class WebSocketManager:
    """Subscribers to job completion events and service log lines."""

    def __init__(self) -> None:
        self.connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)

    async def broadcast(self, payload: Dict[str, Any]) -> None:
        dead: list[WebSocket] = []
        for conn in list(self.connections):
            try:
                await conn.send_json(payload)
            except RuntimeError:
                dead.append(conn)
        for conn in dead:
            self.connections.discard(conn)

    async def job_status(
        self, job_id: int, status: str, status_code: Optional[int] = None
    ) -> None:
        payload: Dict[str, Any] = {
            "type": "job.status",
            "job_id": job_id,
            "status": status,
            "timestamp": utc_now(),
        }
        if status_code is not None:
            payload["status_code"] = status_code
        await self.broadcast(payload)

    async def emit_log(
        self, level: str, message: str, meta: Optional[Dict[str, Any]] = None
    ) -> None:
        log_message = message.strip()
        if not log_message:
            return
        if level == "error":
            logger.error(log_message)
        elif level == "warn":
            logger.warning(log_message)
        else:
            logger.info(log_message)
        await self.broadcast(
            {
                "type": "log",
                "level": level,
                "message": log_message,
                "timestamp": utc_now(),
                "meta": meta,
            }
        )


manager = WebSocketManager()
