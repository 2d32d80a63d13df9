"""RelayService state and fan-out, driven with fake sockets."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from tradetide.constants.constants import RelayEvent
from tradetide.core.database import DatabaseSessionManager
from tradetide.models.chat import Chat, Message
from tradetide.models.user import User
from tradetide.services.RelayService import RelayService, chat_room, user_room

pytestmark = pytest.mark.anyio


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.frames = []
        self.fail = fail

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(payload)

    def events(self):
        return [frame["event"] for frame in self.frames]


@pytest.fixture()
async def manager(database_url):
    db_manager = DatabaseSessionManager()
    await db_manager.init(database_url)
    yield db_manager
    await db_manager.close()


@pytest.fixture()
async def chat_ids(manager):
    """Alice and Bob share a chat; Mallory is not part of it."""
    async with manager.get_session() as db:
        alice = User(user_id="alice", username="alice", email="alice@example.com", password_hash="x")
        bob = User(user_id="bob", username="bob", email="bob@example.com", password_hash="x")
        mallory = User(user_id="mallory", username="mallory", email="mallory@example.com", password_hash="x")
        chat = Chat(chat_id="chat-1", participants=[alice, bob])
        db.add_all([alice, bob, mallory, chat])
    return "chat-1"


@pytest.fixture()
def relay(manager):
    return RelayService(session_scope=manager.get_session)


async def count_messages(manager) -> int:
    async with manager.get_session() as db:
        result = await db.execute(select(func.count(Message.message_id)))
        return result.scalar()


async def test_authenticate_replaces_previous_connection(relay):
    first, second = FakeSocket(), FakeSocket()
    old = relay.register(first)
    new = relay.register(second)

    relay.authenticate(old, "alice")
    relay.authenticate(new, "alice")
    assert relay.connection_for("alice") is new

    await relay.send_to_user("alice", RelayEvent.new_chat, {"chatId": "c"})
    assert first.frames == []
    assert second.frames == [{"event": "new_chat", "data": {"chatId": "c"}}]


async def test_disconnect_clears_mapping_and_rooms(relay):
    connection = relay.register(FakeSocket())
    relay.authenticate(connection, "alice")
    relay.join(connection, "chat-1")

    relay.disconnect(connection)
    assert relay.connection_for("alice") is None
    assert relay.members(user_room("alice")) == set()
    assert relay.members(chat_room("chat-1")) == set()


async def test_leave_stops_chat_delivery(relay):
    socket = FakeSocket()
    connection = relay.register(socket)
    relay.join(connection, "chat-1")
    relay.leave(connection, "chat-1")

    await relay.send_to_chat("chat-1", RelayEvent.user_typing, {})
    assert socket.frames == []


async def test_relay_message_persists_and_fans_out(relay, manager, chat_ids):
    alice_socket, bob_socket, watcher_socket = FakeSocket(), FakeSocket(), FakeSocket()
    alice = relay.register(alice_socket)
    bob = relay.register(bob_socket)
    watcher = relay.register(watcher_socket)
    relay.authenticate(alice, "alice")
    relay.authenticate(bob, "bob")
    relay.join(alice, chat_ids)
    relay.join(watcher, chat_ids)

    payload = await relay.relay_message(chat_ids, "alice", "  hello  ")

    assert payload["content"] == "hello"
    assert payload["senderId"] == "alice"
    assert await count_messages(manager) == 1

    assert alice_socket.events() == ["new_message"]
    assert watcher_socket.events() == ["new_message"]
    # bob never joined the chat room, so only the user-room notification reaches him
    assert bob_socket.frames == [
        {"event": "chat_notification", "data": {"chatId": chat_ids, "message": payload}}
    ]


async def test_message_from_non_participant_is_dropped(relay, manager, chat_ids):
    alice_socket, mallory_socket = FakeSocket(), FakeSocket()
    alice = relay.register(alice_socket)
    mallory = relay.register(mallory_socket)
    relay.authenticate(alice, "alice")
    relay.authenticate(mallory, "mallory")
    relay.join(alice, chat_ids)
    relay.join(mallory, chat_ids)

    assert await relay.relay_message(chat_ids, "mallory", "sneaky") is None
    assert await relay.relay_message(chat_ids, "alice", "   ") is None
    assert await relay.relay_message("", "alice", "hello") is None

    assert await count_messages(manager) == 0
    assert alice_socket.frames == []
    assert mallory_socket.frames == []


async def test_typing_skips_origin_and_is_not_persisted(relay, manager, chat_ids):
    alice_socket, bob_socket = FakeSocket(), FakeSocket()
    alice = relay.register(alice_socket)
    bob = relay.register(bob_socket)
    relay.join(alice, chat_ids)
    relay.join(bob, chat_ids)

    await relay.relay_typing(alice, chat_ids, "alice", True)

    assert alice_socket.frames == []
    assert bob_socket.frames == [
        {"event": "user_typing", "data": {"chatId": chat_ids, "userId": "alice", "isTyping": True}}
    ]
    assert await count_messages(manager) == 0


async def test_read_receipt_marks_incoming_only(relay, manager, chat_ids):
    await relay.relay_message(chat_ids, "alice", "from alice")
    await relay.relay_message(chat_ids, "bob", "from bob")

    alice_socket, bob_socket = FakeSocket(), FakeSocket()
    alice = relay.register(alice_socket)
    bob = relay.register(bob_socket)
    relay.join(alice, chat_ids)
    relay.join(bob, chat_ids)

    assert await relay.relay_read_receipt(bob, chat_ids, "bob") == 1

    async with manager.get_session() as db:
        result = await db.execute(select(Message.content, Message.read).order_by(Message.content))
        assert result.all() == [("from alice", True), ("from bob", False)]

    assert bob_socket.frames == []
    assert alice_socket.frames == [{"event": "messages_read", "data": {"chatId": chat_ids, "userId": "bob"}}]


async def test_read_receipt_from_outsider_is_dropped(relay, chat_ids):
    mallory = relay.register(FakeSocket())
    assert await relay.relay_read_receipt(mallory, chat_ids, "mallory") is None


async def test_dead_socket_is_dropped(relay):
    dead = relay.register(FakeSocket(fail=True))
    relay.authenticate(dead, "alice")
    relay.join(dead, "chat-1")

    await relay.send_to_chat("chat-1", RelayEvent.user_typing, {})
    assert relay.connection_for("alice") is None
    assert relay.members(chat_room("chat-1")) == set()
