import uuid
from sqlalchemy import Column, String, Integer, Text, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from tradetide.models.base import Base, TimestampMixin


class Review(Base, TimestampMixin):
    """Rating left by one session participant about the other."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("reviewer_id", "session_id", name="uq_review_reviewer_session"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_review_rating_range"),
    )

    review_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    reviewer_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    reviewee_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    session_id = Column(String, ForeignKey("sessions.session_id"), nullable=False)
    skill = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)

    # Relationships
    reviewer = relationship("User", foreign_keys=[reviewer_id], lazy="selectin")
    reviewee = relationship("User", foreign_keys=[reviewee_id], lazy="selectin")
