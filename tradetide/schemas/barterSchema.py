from datetime import datetime
from typing import Optional
from pydantic import Field

from tradetide.constants.constants import BarterStatus
from tradetide.schemas.baseSchema import CamelModel
from tradetide.schemas.userSchema import UserSummary


class BarterRequestCreate(CamelModel):
    receiver_id: str = Field(..., min_length=1)
    skill: str = Field(..., min_length=1, max_length=100)


class BarterRequestResponse(CamelModel):
    request_id: str
    sender_id: str
    receiver_id: str
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None
    skill: str
    status: BarterStatus
    created_at: datetime
    updated_at: datetime
