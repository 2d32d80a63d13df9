"""Chat persistence shared by the REST endpoints and the real-time relay.

Every chat write goes through this module. After committing, it hands the
serialised result to the relay so live clients see exactly what was stored.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import RelayEvent
from tradetide.models.base import utc_now
from tradetide.models.chat import Chat, Message, chat_participants
from tradetide.models.user import User
from tradetide.schemas.chatSchema import ChatResponse, MessageResponse

logger = logging.getLogger(__name__)


class ChatServiceError(Exception):
    """Base class for chat failures the callers translate into responses."""


class ChatNotFoundError(ChatServiceError):
    """Chat does not exist or the user does not take part in it."""


class InvalidMessageError(ChatServiceError):
    """Malformed ids or empty content."""


class InvalidParticipantError(ChatServiceError):
    """Chat partner missing or equal to the requester."""


class ParticipantNotFoundError(InvalidParticipantError):
    """Chat partner id does not belong to any user."""


def chat_payload(chat: Chat) -> dict:
    return ChatResponse.model_validate(chat).model_dump(by_alias=True, mode="json")


def message_payload(message: Message) -> dict:
    return MessageResponse.model_validate(message).model_dump(by_alias=True, mode="json")


async def get_chat_for_participant(db: AsyncSession, chat_id: str, user_id: str) -> Chat:
    """Load a chat, raising ChatNotFoundError unless user_id participates."""
    if not chat_id or not user_id:
        raise InvalidMessageError("Invalid chat ID")

    result = await db.execute(select(Chat).where(Chat.chat_id == chat_id))
    chat = result.scalar_one_or_none()
    if not chat or user_id not in chat.participant_ids:
        raise ChatNotFoundError("Chat not found or access denied")
    return chat


async def list_chats_for_user(db: AsyncSession, user_id: str) -> List[Chat]:
    result = await db.execute(
        select(Chat)
        .join(chat_participants, chat_participants.c.chat_id == Chat.chat_id)
        .where(chat_participants.c.user_id == user_id)
        .order_by(Chat.updated_at.desc())
    )
    return list(result.scalars().unique().all())


async def find_chat_between(db: AsyncSession, user_id: str, other_id: str) -> Optional[Chat]:
    for chat in await list_chats_for_user(db, user_id):
        if other_id in chat.participant_ids:
            return chat
    return None


async def get_or_create_chat(
    db: AsyncSession,
    relay,
    user: User,
    participant_id: str,
) -> Tuple[Chat, bool]:
    """
    Return the chat between user and participant, creating it on first contact.
    Returns: (chat, created)
    """
    if not participant_id or participant_id == user.user_id:
        raise InvalidParticipantError("Invalid participant ID")

    result = await db.execute(select(User).where(User.user_id == participant_id))
    participant = result.scalar_one_or_none()
    if not participant:
        raise ParticipantNotFoundError("Participant not found")

    existing = await find_chat_between(db, user.user_id, participant_id)
    if existing:
        return existing, False

    chat = Chat(participants=[user, participant])
    db.add(chat)
    await db.commit()
    logger.info(f"Chat {chat.chat_id} created between {user.user_id} and {participant_id}")

    if relay is not None:
        await relay.send_to_user(participant_id, RelayEvent.new_chat, chat_payload(chat))
    return chat, True


async def list_messages(db: AsyncSession, chat_id: str) -> List[Message]:
    result = await db.execute(
        select(Message)
        .where(Message.chat_id == chat_id)
        .order_by(Message.created_at.asc())
    )
    return list(result.scalars().all())


async def send_message(
    db: AsyncSession,
    relay,
    chat_id: str,
    sender_id: str,
    content: str,
) -> Message:
    """
    Persist a message and broadcast it.

    Broadcasts new_message to the chat room and chat_notification to every
    other participant's user room, so participants who have not joined the
    chat room still hear about it.
    """
    if not chat_id or not sender_id:
        raise InvalidMessageError("Invalid chat ID")
    if not isinstance(content, str) or not content.strip():
        raise InvalidMessageError("Message content cannot be empty")

    chat = await get_chat_for_participant(db, chat_id, sender_id)
    sender = next(user for user in chat.participants if user.user_id == sender_id)

    message = Message(
        chat_id=chat_id,
        sender_id=sender_id,
        sender=sender,
        content=content.strip(),
        read=False,
    )
    db.add(message)
    chat.updated_at = utc_now()
    await db.commit()

    payload = message_payload(message)
    if relay is not None:
        await relay.publish_message(chat_id, sender_id, chat.participant_ids, payload)
    return message


async def mark_chat_read(
    db: AsyncSession,
    relay,
    chat_id: str,
    user_id: str,
    origin=None,
) -> int:
    """
    Flag every message in the chat not written by user_id as read.
    Returns the number of messages that changed.
    """
    await get_chat_for_participant(db, chat_id, user_id)

    result = await db.execute(
        update(Message)
        .where(
            and_(
                Message.chat_id == chat_id,
                Message.sender_id != user_id,
                Message.read == False,
            )
        )
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    if relay is not None:
        await relay.publish_read_receipt(chat_id, user_id, origin=origin)
    return result.rowcount or 0


async def unread_count(db: AsyncSession, user_id: str) -> int:
    chat_ids = select(chat_participants.c.chat_id).where(chat_participants.c.user_id == user_id)
    result = await db.execute(
        select(func.count(Message.message_id)).where(
            and_(
                Message.chat_id.in_(chat_ids),
                Message.sender_id != user_id,
                Message.read == False,
            )
        )
    )
    return result.scalar() or 0
