"""Scheduled skill sessions between two users."""

import uuid
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey

from tradetide.constants.constants import SessionStatus
from tradetide.models.base import Base, TimestampMixin


class SkillSession(Base, TimestampMixin):
    """A proposed meeting between the scheduler and one other participant."""

    __tablename__ = "sessions"

    session_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    scheduled_by = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    participant_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    skill = Column(String, nullable=False)
    date = Column(DateTime, nullable=False)
    status = Column(Enum(SessionStatus), default=SessionStatus.pending, nullable=False)

    @property
    def user_ids(self):
        return [self.scheduled_by, self.participant_id]

    def involves(self, user_id: str) -> bool:
        return user_id in self.user_ids

    def counterparty_of(self, user_id: str) -> str:
        return self.participant_id if user_id == self.scheduled_by else self.scheduled_by
