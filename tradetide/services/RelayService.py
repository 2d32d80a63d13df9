"""Real-time relay for chat: connection tracking, rooms and event fan-out.

One RelayService is created per process by the application lifespan and
kept on app.state.relay. It owns all connection state; nothing here is
module-global, so tests can build their own instance with fake connections.
"""

import logging
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Set

from fastapi import Request
from starlette.websockets import WebSocketDisconnect

from tradetide.constants.constants import RelayEvent
from tradetide.services import ChatService

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def chat_room(chat_id: str) -> str:
    return f"chat:{chat_id}"


class RelayConnection:
    """A live client socket plus the identity it authenticated as."""

    def __init__(self, websocket):
        self.connection_id = str(uuid.uuid4())
        self.websocket = websocket
        self.user_id: Optional[str] = None

    async def send(self, event: str, data: Any):
        await self.websocket.send_json({"event": event, "data": data})

    def __repr__(self):
        return f"<RelayConnection {self.connection_id} user={self.user_id}>"


class RelayService:
    """Tracks who is connected and which rooms each connection listens to."""

    def __init__(self, session_scope: Optional[Callable] = None):
        # session_scope() must return an async context manager yielding an AsyncSession
        self._session_scope = session_scope
        self._user_connections: Dict[str, RelayConnection] = {}
        self._rooms: Dict[str, Set[RelayConnection]] = defaultdict(set)

    # ------------------------------
    # Connection state
    # ------------------------------
    def register(self, websocket) -> RelayConnection:
        connection = RelayConnection(websocket)
        logger.info(f"🔌 New socket connection: {connection.connection_id}")
        return connection

    def authenticate(self, connection: RelayConnection, user_id: str):
        """Map user_id to this connection, replacing any earlier one."""
        if not user_id:
            return
        previous = self._user_connections.get(user_id)
        if previous is not None and previous is not connection:
            logger.info(f"User {user_id} moved from {previous.connection_id} to {connection.connection_id}")
        connection.user_id = user_id
        self._user_connections[user_id] = connection
        self._rooms[user_room(user_id)].add(connection)
        logger.info(f"User {user_id} authenticated with socket {connection.connection_id}")

    def join(self, connection: RelayConnection, chat_id: str):
        if not chat_id:
            return
        self._rooms[chat_room(chat_id)].add(connection)
        logger.info(f"Socket {connection.connection_id} joined chat {chat_id}")

    def leave(self, connection: RelayConnection, chat_id: str):
        if not chat_id:
            return
        self._leave_room(chat_room(chat_id), connection)
        logger.info(f"Socket {connection.connection_id} left chat {chat_id}")

    def disconnect(self, connection: RelayConnection):
        for user_id, mapped in list(self._user_connections.items()):
            if mapped is connection:
                del self._user_connections[user_id]
        for room in list(self._rooms):
            self._leave_room(room, connection)
        logger.info(f"Socket disconnected: {connection.connection_id}")

    def _leave_room(self, room: str, connection: RelayConnection):
        members = self._rooms.get(room)
        if not members:
            return
        members.discard(connection)
        if not members:
            del self._rooms[room]

    def connection_for(self, user_id: str) -> Optional[RelayConnection]:
        return self._user_connections.get(user_id)

    def members(self, room: str) -> Set[RelayConnection]:
        return set(self._rooms.get(room, ()))

    async def close(self):
        """Forget every connection. Called once on application shutdown."""
        logger.info(f"Relay shutting down with {len(self._user_connections)} authenticated users")
        self._user_connections.clear()
        self._rooms.clear()

    # ------------------------------
    # Delivery
    # ------------------------------
    async def _deliver(self, connection: RelayConnection, event: RelayEvent, data: Any):
        try:
            await connection.send(event.value, data)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.warning(f"Dropping dead socket {connection.connection_id}: {e}")
            self.disconnect(connection)

    async def emit_to_room(
        self,
        room: str,
        event: RelayEvent,
        data: Any,
        exclude: Optional[RelayConnection] = None,
    ):
        for connection in list(self._rooms.get(room, ())):
            if connection is exclude:
                continue
            await self._deliver(connection, event, data)

    async def send_to_user(self, user_id: str, event: RelayEvent, data: Any):
        """Deliver to the most recently authenticated connection of a user only."""
        connection = self._user_connections.get(user_id)
        if connection is not None:
            await self._deliver(connection, event, data)

    async def send_to_chat(self, chat_id: str, event: RelayEvent, data: Any,
                           exclude: Optional[RelayConnection] = None):
        await self.emit_to_room(chat_room(chat_id), event, data, exclude=exclude)

    async def publish_message(self, chat_id: str, sender_id: str, participant_ids, payload: dict):
        await self.send_to_chat(chat_id, RelayEvent.new_message, payload)
        for participant_id in participant_ids:
            if participant_id != sender_id:
                await self.emit_to_room(
                    user_room(participant_id),
                    RelayEvent.chat_notification,
                    {"chatId": chat_id, "message": payload},
                )

    async def publish_read_receipt(self, chat_id: str, user_id: str,
                                   origin: Optional[RelayConnection] = None):
        await self.send_to_chat(
            chat_id,
            RelayEvent.messages_read,
            {"chatId": chat_id, "userId": user_id},
            exclude=origin,
        )

    # ------------------------------
    # Client events
    # ------------------------------
    async def relay_message(self, chat_id: str, sender_id: str, content: str) -> Optional[dict]:
        """
        Persist and broadcast a message sent over the socket.
        Invalid input or a sender outside the chat is dropped; returns None.
        """
        async with self._session_scope() as db:
            try:
                message = await ChatService.send_message(db, self, chat_id, sender_id, content)
            except ChatService.ChatServiceError as e:
                logger.info(f"Dropped message from {sender_id} to chat {chat_id}: {e}")
                return None
            return ChatService.message_payload(message)

    async def relay_typing(self, connection: RelayConnection, chat_id: str, user_id: str, is_typing: bool):
        if not chat_id:
            return
        await self.send_to_chat(
            chat_id,
            RelayEvent.user_typing,
            {"chatId": chat_id, "userId": user_id, "isTyping": bool(is_typing)},
            exclude=connection,
        )

    async def relay_read_receipt(self, connection: RelayConnection, chat_id: str, user_id: str) -> Optional[int]:
        async with self._session_scope() as db:
            try:
                return await ChatService.mark_chat_read(db, self, chat_id, user_id, origin=connection)
            except ChatService.ChatServiceError as e:
                logger.info(f"Dropped read receipt from {user_id} for chat {chat_id}: {e}")
                return None


def get_relay(request: Request) -> Optional[RelayService]:
    """FastAPI dependency returning the process-wide relay, if the lifespan created one."""
    return getattr(request.app.state, "relay", None)
