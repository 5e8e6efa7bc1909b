import json
import logging
from fastapi import WebSocket, WebSocketDisconnect, Query, status
from pydantic import ValidationError as PydanticValidationError

from fitcircle.core.database import AsyncSessionLocal
from fitcircle.core.websocket import connection_manager
from fitcircle.schemas.chat import IncomingEvent, WebSocketEventType
from fitcircle.services.auth import AuthService

logger = logging.getLogger(__name__)


async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(..., description="JWT access token")
):
    """WebSocket endpoint for realtime notifications"""
    async with AsyncSessionLocal() as db:
        user = await AuthService(db).get_user_from_token(token)

    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await connection_manager.connect(websocket, user.id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                event = IncomingEvent.model_validate(json.loads(raw))
            except (json.JSONDecodeError, PydanticValidationError):
                await connection_manager.send_error(user.id, "Invalid event format", "invalid_event")
                continue

            if event.type == WebSocketEventType.PING:
                await connection_manager.send_pong(user.id)
            else:
                await connection_manager.send_error(
                    user.id, f"Unsupported event type: {event.type.value}", "unsupported_event"
                )
    except WebSocketDisconnect:
        logger.debug(f"User {user.id} closed the WebSocket")
    finally:
        connection_manager.disconnect(user.id, websocket)
