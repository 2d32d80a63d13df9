"""Side-effect records written alongside a primary change.

Both helpers only add rows to the caller's session; the caller commits
them together with the primary write, so they land or roll back as one.
"""

import logging
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import AuditAction, NotificationType
from tradetide.models.auditlog import AuditLog
from tradetide.models.notifications import Notification

logger = logging.getLogger(__name__)


def add_notification(db: AsyncSession, user_id: str, type: NotificationType, message: str) -> Notification:
    notification = Notification(user_id=user_id, type=type.value, message=message, read=False)
    db.add(notification)
    return notification


def add_audit_log(
    db: AsyncSession,
    user_id: str,
    action: AuditAction,
    target: str,
    details: Optional[Any] = None,
) -> AuditLog:
    log = AuditLog(
        user_id=user_id,
        action=action.value,
        target=target,
        details=jsonable_encoder(details) if details is not None else None,
    )
    db.add(log)
    logger.info(f"Audit: {action.value} on {target} by {user_id}")
    return log
