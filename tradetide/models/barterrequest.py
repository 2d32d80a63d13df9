import uuid
from sqlalchemy import Column, String, Enum, ForeignKey
from sqlalchemy.orm import relationship

from tradetide.constants.constants import BarterStatus
from tradetide.models.base import Base, TimestampMixin


class BarterRequest(Base, TimestampMixin):
    """Directed proposal from sender to receiver to trade a named skill."""

    __tablename__ = "barter_requests"

    request_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    sender_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    receiver_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    skill = Column(String, nullable=False)
    status = Column(Enum(BarterStatus), default=BarterStatus.pending, nullable=False)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    receiver = relationship("User", foreign_keys=[receiver_id], lazy="selectin")

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def counterparty_of(self, user_id: str) -> str:
        return self.receiver_id if user_id == self.sender_id else self.sender_id
