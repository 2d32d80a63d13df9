import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.user import User
from tradetide.schemas.chatSchema import (
    ChatDetailResponse,
    ChatResponse,
    CreateChatRequest,
    MessageResponse,
    SendMessageRequest,
    UnreadCountResponse,
)
from tradetide.services import ChatService
from tradetide.services.RelayService import RelayService, get_relay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def raise_for_chat_error(e: ChatService.ChatServiceError):
    if isinstance(e, (ChatService.ChatNotFoundError, ChatService.ParticipantNotFoundError)):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


@router.get("/chats")
async def list_chats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Chats the caller takes part in, most recently active first"""
    chats = await ChatService.list_chats_for_user(db, current_user.user_id)
    return {"chats": [ChatResponse.model_validate(c) for c in chats]}


@router.post("/chats", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    body: CreateChatRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    relay: Optional[RelayService] = Depends(get_relay)
):
    """
    Open a chat with another user
    Returns the existing chat (200) if the pair already has one
    """
    try:
        chat, created = await ChatService.get_or_create_chat(db, relay, current_user, body.participant_id)
    except ChatService.ChatServiceError as e:
        raise_for_chat_error(e)

    if not created:
        response.status_code = status.HTTP_200_OK
    return ChatResponse.model_validate(chat)


@router.get("/chats/{chat_id}", response_model=ChatDetailResponse)
async def get_chat(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    relay: Optional[RelayService] = Depends(get_relay)
):
    """
    A chat with its messages in send order
    Opening a chat marks the caller's incoming messages as read
    """
    try:
        chat = await ChatService.get_chat_for_participant(db, chat_id, current_user.user_id)
        await ChatService.mark_chat_read(db, relay, chat_id, current_user.user_id)
    except ChatService.ChatServiceError as e:
        raise_for_chat_error(e)

    messages = await ChatService.list_messages(db, chat_id)
    return ChatDetailResponse(
        chat=ChatResponse.model_validate(chat),
        messages=[MessageResponse.model_validate(m) for m in messages],
    )


@router.put("/chats/{chat_id}/read")
async def mark_chat_read(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    relay: Optional[RelayService] = Depends(get_relay)
):
    try:
        updated = await ChatService.mark_chat_read(db, relay, chat_id, current_user.user_id)
    except ChatService.ChatServiceError as e:
        raise_for_chat_error(e)
    return {"success": True, "markedCount": updated}


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db),
    relay: Optional[RelayService] = Depends(get_relay)
):
    """Persist a message and push it to live clients"""
    try:
        message = await ChatService.send_message(
            db, relay, body.chat_id, current_user.user_id, body.content
        )
    except ChatService.ChatServiceError as e:
        raise_for_chat_error(e)
    return MessageResponse.model_validate(message)


@router.get("/messages/unread", response_model=UnreadCountResponse)
async def unread_messages(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    count = await ChatService.unread_count(db, current_user.user_id)
    return UnreadCountResponse(unread_count=count)
