"""
Real-time Routes

WS /ws?token=<access_token> - Notifications and project comment events

The token is checked once when the socket opens; a bad or missing token
closes the socket with code 4001. See app.services.realtime for messages.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pymongo.database import Database

from app.api.deps import get_database
from app.core.auth import actor_from_token
from app.services.mongo_service import NotificationStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

UNAUTHORIZED_CLOSE_CODE = 4001


@router.websocket("/ws")
async def realtime(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Database = Depends(get_database)
):
    manager = websocket.app.state.connection_manager
    await websocket.accept()

    actor = actor_from_token(token)
    if actor is None:
        logger.warning("Rejected unauthenticated WebSocket connection")
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
        return

    manager.register(websocket, actor.subject_id)
    try:
        await websocket.send_json({
            "type": "unread_count",
            "count": NotificationStore(db).count_unread(actor.subject_id)
        })
        while True:
            text = await websocket.receive_text()
            reply = manager.handle_message(websocket, text)
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect as e:
        logger.info("WebSocket disconnected: user %s (code: %s)", actor.subject_id, e.code)
    finally:
        manager.disconnect(websocket)
