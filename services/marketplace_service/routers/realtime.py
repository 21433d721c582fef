"""WebSocket endpoint for order notifications.

Clients connect to ``/ws?token=<jwt>`` and then join their own room:

    {"event": "joinCustomerRoom", "data": "<user id>"}
    {"event": "joinVendorRoom", "data": "<vendor user id>"}

Server pushes arrive as ``{"event": ..., "data": {...}}``.
"""

import json
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from libs.auth.dependencies import user_from_token
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.marketplace_service.services.notifications import (
    ConnectionManager,
    customer_room,
    get_connection_manager,
    vendor_room,
)

router = APIRouter(tags=["realtime"])
logger = get_logger(__name__)

JOIN_CUSTOMER_ROOM = "joinCustomerRoom"
JOIN_VENDOR_ROOM = "joinVendorRoom"


def _room_for(user: AuthUser, event: str, target: str) -> Optional[str]:
    """Room a join request maps to, or None if the caller may not join it."""
    try:
        if uuid.UUID(target) != user.user_uuid:
            return None
    except ValueError:
        return None
    if event == JOIN_CUSTOMER_ROOM and user.is_customer:
        return customer_room(user.user_uuid)
    if event == JOIN_VENDOR_ROOM and user.is_vendor:
        return vendor_room(user.user_uuid)
    return None


@router.websocket("/ws")
async def notifications_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    notifier: ConnectionManager = Depends(get_connection_manager),
):
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user = user_from_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info("Socket connected for %s (%s)", user.user_id, user.role)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json(
                    {"event": "error", "data": {"message": "Messages must be JSON."}}
                )
                continue

            event = message.get("event") if isinstance(message, dict) else None
            target = str(message.get("data", "")) if isinstance(message, dict) else ""

            if event not in (JOIN_CUSTOMER_ROOM, JOIN_VENDOR_ROOM):
                await websocket.send_json(
                    {"event": "error", "data": {"message": "Unknown event."}}
                )
                continue

            room = _room_for(user, event, target)
            if room is None:
                await websocket.send_json(
                    {"event": "error", "data": {"message": "Cannot join that room."}}
                )
                continue

            notifier.join(websocket, room)
            await websocket.send_json({"event": "joined", "data": {"room": room}})
    except WebSocketDisconnect:
        logger.info("Socket disconnected for %s", user.user_id)
    finally:
        notifier.leave_all(websocket)
