from datetime import datetime
from typing import Any, Optional

from tradetide.schemas.baseSchema import CamelModel


class AuditLogResponse(CamelModel):
    log_id: str
    user_id: str
    action: str
    target: str
    details: Optional[Any] = None
    created_at: datetime
