"""WebSocket transport for the chat relay.

Frames in both directions are JSON objects {"event": <name>, "data": <payload>}.
A connection must send `authenticate` with a bearer token before any other
event; every later event acts as that user.
"""

import logging
from typing import Any, Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from sqlalchemy import select

from tradetide.constants.constants import RelayEvent
from tradetide.core.database import session_manager
from tradetide.core.security import resolve_token_subject
from tradetide.models.user import User
from tradetide.services.RelayService import RelayConnection, RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def chat_id_from(data: Any) -> Optional[str]:
    """join_chat/leave_chat accept either a bare chat id or {"chatId": ...}."""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        return data.get("chatId")
    return None


async def send_error(connection: RelayConnection, message: str):
    await connection.send(RelayEvent.error.value, {"message": message})


async def authenticate_connection(relay: RelayService, connection: RelayConnection, data: Any):
    token = data.get("token") if isinstance(data, dict) else data
    user_id = resolve_token_subject(token) if isinstance(token, str) else None

    known_id = None
    if user_id:
        async with session_manager.get_session() as db:
            result = await db.execute(select(User.user_id).where(User.user_id == user_id))
            known_id = result.scalar_one_or_none()

    if not known_id:
        logger.info(f"Socket {connection.connection_id} failed to authenticate")
        await send_error(connection, "Invalid token")
        return

    relay.authenticate(connection, known_id)
    await connection.send(RelayEvent.authenticated.value, {"userId": known_id})


async def dispatch(relay: RelayService, connection: RelayConnection, frame: Any):
    if not isinstance(frame, dict):
        await send_error(connection, "Invalid frame")
        return

    try:
        event = RelayEvent(frame.get("event"))
    except ValueError:
        await send_error(connection, f"Unknown event: {frame.get('event')}")
        return
    data = frame.get("data")

    if event == RelayEvent.authenticate:
        await authenticate_connection(relay, connection, data)
        return

    user_id = connection.user_id
    if not user_id:
        await send_error(connection, "Not authenticated")
        return

    if event == RelayEvent.join_chat:
        chat_id = chat_id_from(data)
        relay.join(connection, chat_id)
        await connection.send(RelayEvent.joined_chat.value, {"chatId": chat_id})

    elif event == RelayEvent.leave_chat:
        chat_id = chat_id_from(data)
        relay.leave(connection, chat_id)
        await connection.send(RelayEvent.left_chat.value, {"chatId": chat_id})

    elif event == RelayEvent.send_message:
        data = data if isinstance(data, dict) else {}
        delivered = await relay.relay_message(data.get("chatId"), user_id, data.get("content"))
        if delivered is None:
            await send_error(connection, "Message not sent")

    elif event == RelayEvent.typing:
        data = data if isinstance(data, dict) else {}
        await relay.relay_typing(connection, data.get("chatId"), user_id, data.get("isTyping", False))

    elif event == RelayEvent.mark_read:
        await relay.relay_read_receipt(connection, chat_id_from(data), user_id)

    else:
        # server -> client events are not accepted from clients
        await send_error(connection, f"Unsupported event: {event.value}")


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket):
    relay: RelayService = websocket.app.state.relay
    await websocket.accept()
    connection = relay.register(websocket)

    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await send_error(connection, "Invalid frame")
                continue
            await dispatch(relay, connection, frame)
    except WebSocketDisconnect:
        logger.info(f"Client closed socket {connection.connection_id}")
    finally:
        relay.disconnect(connection)
