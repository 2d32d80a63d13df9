"""Append-only audit trail of successful mutations."""

import uuid
from sqlalchemy import Column, String, ForeignKey, JSON, DateTime
from tradetide.models.base import Base, utc_now


class AuditLog(Base):
    __tablename__ = "audit_logs"

    log_id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    action = Column(String, nullable=False, index=True)
    target = Column(String, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
