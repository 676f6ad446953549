"""Real-time notification stream over WebSocket."""

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from api.dependencies.auth import get_auth_provider
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.realtime.connection_manager import ConnectionManager, connection_manager

logger = structlog.get_logger()

router = APIRouter(tags=["realtime"])


def get_connection_manager() -> ConnectionManager:
    return connection_manager


@router.websocket("/ws/notifications")
async def notifications_stream(
    websocket: WebSocket,
    token: str = Query(""),
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
    manager: ConnectionManager = Depends(get_connection_manager),
) -> None:
    """Push ``notification.created`` events to the authenticated user.

    Browsers cannot set headers on a WebSocket handshake, so the access token
    travels in the ``token`` query parameter. Incoming messages are ignored.
    """
    user = await auth_provider.validate_token(token) if token else None
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(user.id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user.id, websocket)
        logger.debug("ws_disconnected", user_id=str(user.id))
