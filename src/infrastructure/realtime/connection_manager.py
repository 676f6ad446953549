"""In-process WebSocket fan-out keyed by user."""

from typing import Any
from uuid import UUID

import structlog
from starlette.websockets import WebSocket

logger = structlog.get_logger()


class ConnectionManager:
    """Tracks open sockets per user and pushes events to them.

    Delivery is best-effort: a socket that fails to send is dropped.
    Connections live in this process only.
    """

    def __init__(self) -> None:
        self._connections: dict[UUID, list[WebSocket]] = {}

    async def connect(self, user_id: UUID, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.setdefault(user_id, []).append(websocket)
        logger.debug("ws_connected", user_id=str(user_id))

    def disconnect(self, user_id: UUID, websocket: WebSocket) -> None:
        conns = self._connections.get(user_id, [])
        if websocket in conns:
            conns.remove(websocket)
        if not conns:
            self._connections.pop(user_id, None)

    def connection_count(self, user_id: UUID | None = None) -> int:
        if user_id is not None:
            return len(self._connections.get(user_id, []))
        return sum(len(c) for c in self._connections.values())

    async def emit_to_user(self, user_id: UUID, event: str, payload: dict[str, Any]) -> None:
        for ws in list(self._connections.get(user_id, [])):
            try:
                await ws.send_json({"event": event, "data": payload})
            except Exception:
                logger.debug("ws_send_failed", user_id=str(user_id))
                self.disconnect(user_id, ws)


connection_manager = ConnectionManager()
