from datetime import datetime
from typing import List
from pydantic import Field

from tradetide.constants.constants import SessionStatus
from tradetide.schemas.baseSchema import CamelModel


class SessionCreateRequest(CamelModel):
    """Request schema for proposing a new session."""
    participant_id: str = Field(..., min_length=1)
    date: datetime
    skill: str = Field(..., min_length=1, max_length=100)


class SessionStatusUpdateRequest(CamelModel):
    status: SessionStatus


class SessionResponse(CamelModel):
    session_id: str
    user_ids: List[str]
    scheduled_by: str
    participant_id: str
    skill: str
    date: datetime
    status: SessionStatus
    created_at: datetime
