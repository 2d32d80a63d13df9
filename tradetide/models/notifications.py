import uuid
from sqlalchemy import Boolean, Column, ForeignKey, String, Text
from tradetide.models.base import Base, TimestampMixin


class Notification(Base, TimestampMixin):
    """Model for in-app notifications."""
    
    __tablename__ = "notifications"
    
    notification_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    
    type = Column(String, nullable=False)  # barter, chat, session, review
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
