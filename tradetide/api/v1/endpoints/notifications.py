from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, update

from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.notifications import Notification
from tradetide.models.user import User
from tradetide.schemas.notificationSchema import NotificationListResponse, NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Get notifications for the current user."""

    query = select(Notification).where(Notification.user_id == current_user.user_id)

    if unread_only:
        query = query.where(Notification.read == False)

    query = query.order_by(Notification.created_at.desc())

    result = await db.execute(query)
    notifications = result.scalars().all()

    # Get unread count
    unread_query = await db.execute(
        select(func.count(Notification.notification_id))
        .where(
            and_(
                Notification.user_id == current_user.user_id,
                Notification.read == False
            )
        )
    )
    unread_count = unread_query.scalar() or 0

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=unread_count,
    )


@router.put("/read-all")
async def mark_all_notifications_as_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Mark all notifications as read for the current user."""

    result = await db.execute(
        update(Notification)
        .where(
            and_(
                Notification.user_id == current_user.user_id,
                Notification.read == False
            )
        )
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return {
        "success": True,
        "markedCount": result.rowcount or 0
    }


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_as_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Mark a notification as read. Other users' notifications look missing."""

    query = await db.execute(
        select(Notification).where(
            and_(
                Notification.notification_id == notification_id,
                Notification.user_id == current_user.user_id
            )
        )
    )
    notification = query.scalar_one_or_none()

    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.read = True
    await db.commit()

    return NotificationResponse.model_validate(notification)
