# models/chat.py
import uuid
from sqlalchemy import Column, String, Boolean, Text, ForeignKey, Table
from sqlalchemy.orm import relationship
from tradetide.models.base import Base, TimestampMixin


chat_participants = Table(
    "chat_participants",
    Base.metadata,
    Column("chat_id", String, ForeignKey("chats.chat_id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String, ForeignKey("users.user_id"), primary_key=True),
)


class Chat(Base, TimestampMixin):
    """Conversation between two or more users. updated_at doubles as last activity."""
    __tablename__ = "chats"

    chat_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Relationships
    participants = relationship("User", secondary=chat_participants, lazy="selectin")

    @property
    def participant_ids(self):
        return [user.user_id for user in self.participants]


class Message(Base, TimestampMixin):
    """A message inside a chat. Only the read flag changes after creation."""
    __tablename__ = "messages"

    message_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    chat_id = Column(String, ForeignKey("chats.chat_id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String, ForeignKey("users.user_id"), nullable=False)

    content = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id], lazy="selectin")
