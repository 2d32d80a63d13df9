from datetime import datetime
from typing import List
from pydantic import Field

from tradetide.schemas.baseSchema import CamelModel
from tradetide.schemas.userSchema import UserSummary


class ChatResponse(CamelModel):
    chat_id: str
    participants: List[UserSummary]
    created_at: datetime
    updated_at: datetime


class MessageResponse(CamelModel):
    message_id: str
    chat_id: str
    sender_id: str
    sender: UserSummary
    content: str
    read: bool
    created_at: datetime


class ChatDetailResponse(CamelModel):
    chat: ChatResponse
    messages: List[MessageResponse]


class CreateChatRequest(CamelModel):
    participant_id: str = Field(..., min_length=1)


class SendMessageRequest(CamelModel):
    chat_id: str = Field(..., min_length=1)
    content: str = Field(..., max_length=5000)


class UnreadCountResponse(CamelModel):
    unread_count: int
