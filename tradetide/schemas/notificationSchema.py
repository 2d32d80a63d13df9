from datetime import datetime
from typing import List

from tradetide.schemas.baseSchema import CamelModel


class NotificationResponse(CamelModel):
    notification_id: str
    user_id: str
    type: str
    message: str
    read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: List[NotificationResponse]
    unread_count: int
