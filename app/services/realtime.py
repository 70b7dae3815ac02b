"""
Real-time Connection Manager

Keeps track of open WebSockets grouped into rooms:
- user-<id>     every socket of one user (notifications)
- project-<id>  sockets watching a project's comment thread

It is the production NotificationTransport. Pushes are scheduled on the
running event loop and return immediately, so a request handler never waits
on a slow client.

Client Messages:
- {"type": "ping"}                                  -> {"type": "pong"}
- {"type": "join_room", "room": "project-<id>"}
- {"type": "leave_room", "room": "project-<id>"}

Server Messages:
- {"type": "notification", "notification": {...}}
- {"type": "unread_count", "count": N}
- {"type": "newComment" | "updateComment" | "deleteComment", ...}
"""

import asyncio
import json
import logging
from collections import defaultdict
from typing import Dict, Optional, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from app.services.notification_service import user_room

logger = logging.getLogger(__name__)

JOINABLE_ROOM_PREFIX = "project-"


class ConnectionManager:
    def __init__(self):
        self._rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._pending: Set[asyncio.Task] = set()

    # ============================================================
    # MEMBERSHIP
    # ============================================================

    def join(self, websocket: WebSocket, room: str) -> None:
        self._rooms[room].add(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        members = self._rooms.get(room)
        if not members:
            return
        members.discard(websocket)
        if not members:
            del self._rooms[room]

    def register(self, websocket: WebSocket, user_id: str) -> None:
        """Attach an accepted socket to its user's room."""
        self.join(websocket, user_room(user_id))
        logger.info("WebSocket connected: user %s", user_id)

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a socket from every room it is in."""
        for room in [room for room, members in self._rooms.items() if websocket in members]:
            self.leave(websocket, room)

    def members(self, room: str) -> Set[WebSocket]:
        return set(self._rooms.get(room, ()))

    # ============================================================
    # CLIENT MESSAGES
    # ============================================================

    def handle_message(self, websocket: WebSocket, text: str) -> Optional[dict]:
        """
        Apply one client message. Returns the reply to send, if any.
        Only project rooms can be joined or left by clients.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON received on WebSocket")
            return {"type": "error", "message": "Invalid JSON"}
        if not isinstance(data, dict):
            return {"type": "error", "message": "Invalid message"}

        message_type = data.get("type")
        if message_type == "ping":
            return {"type": "pong"}

        if message_type in ("join_room", "leave_room"):
            room = data.get("room")
            if not isinstance(room, str) or not room.startswith(JOINABLE_ROOM_PREFIX):
                return {"type": "error", "message": "Only project rooms can be joined"}
            if message_type == "join_room":
                self.join(websocket, room)
            else:
                self.leave(websocket, room)
            return None

        return {"type": "error", "message": f"Unknown message type: {message_type}"}

    # ============================================================
    # TRANSPORT
    # ============================================================

    def push_to_user(self, recipient_id: str, payload: dict) -> None:
        self.push_to_room(user_room(recipient_id), payload)

    def push_to_room(self, room_id: str, payload: dict) -> None:
        """Schedule a send to every socket in the room and return immediately."""
        sockets = self.members(room_id)
        if not sockets:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, dropping push to %s", room_id)
            return

        message = jsonable_encoder(payload)
        for websocket in sockets:
            task = loop.create_task(self._send(websocket, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _send(self, websocket: WebSocket, message: dict) -> None:
        try:
            await websocket.send_json(message)
        except Exception:
            logger.warning("Dropping WebSocket after failed send", exc_info=True)
            self.disconnect(websocket)

    async def drain(self) -> None:
        """Wait for scheduled sends. Used on shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
