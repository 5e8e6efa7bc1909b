import json
import asyncio
from typing import Dict, Iterable, Optional
from fastapi import WebSocket
from datetime import datetime, timezone
import logging

from fitcircle.schemas.chat import WebSocketEventType

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks connected users and pushes realtime events to them"""

    def __init__(self):
        # Active connections: user_id -> WebSocket
        self.active_connections: Dict[int, WebSocket] = {}

    async def connect(self, websocket: WebSocket, user_id: int):
        """Accept new WebSocket connection"""
        await websocket.accept()

        # Replace an existing connection if any
        old_websocket = self.active_connections.get(user_id)
        if old_websocket is not None:
            try:
                await old_websocket.close()
            except RuntimeError as e:
                logger.debug(f"Previous socket for user {user_id} already closed: {e}")

        self.active_connections[user_id] = websocket

        logger.info(f"User {user_id} connected to WebSocket")

    def disconnect(self, user_id: int, websocket: Optional[WebSocket] = None):
        """Handle WebSocket disconnection"""
        current = self.active_connections.get(user_id)
        if websocket is not None and current is not websocket:
            # A newer connection replaced this one
            return

        self.active_connections.pop(user_id, None)

        logger.info(f"User {user_id} disconnected from WebSocket")

    async def send_personal_message(self, user_id: int, message: dict) -> bool:
        """Send message to a specific user"""
        websocket = self.active_connections.get(user_id)
        if websocket is None:
            return False

        try:
            await websocket.send_text(json.dumps(message, default=str))
            return True
        except Exception as e:
            logger.error(f"Error sending message to user {user_id}: {e}")
            # Remove failed connection
            self.disconnect(user_id, websocket)
            return False

    async def notify(self, user_ids: Iterable[int], event_type: WebSocketEventType, data: dict):
        """Push an event to every listed user that is online"""
        recipients = [user_id for user_id in user_ids if user_id in self.active_connections]
        if not recipients:
            return

        event = {
            "type": event_type.value,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        results = await asyncio.gather(
            *(self.send_personal_message(user_id, event) for user_id in recipients),
            return_exceptions=True
        )
        delivered = sum(1 for result in results if result is True)
        if delivered < len(recipients):
            logger.warning(f"Delivered {event_type.value} to {delivered}/{len(recipients)} online users")

    async def send_error(self, user_id: int, error_message: str, error_code: Optional[str] = None):
        """Send error message to user"""
        await self.send_personal_message(user_id, {
            "type": WebSocketEventType.ERROR.value,
            "data": {
                "message": error_message,
                "code": error_code
            },
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

    async def send_pong(self, user_id: int):
        """Send pong response to ping"""
        await self.send_personal_message(user_id, {
            "type": WebSocketEventType.PONG.value,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })


# Global connection manager instance
connection_manager = ConnectionManager()
