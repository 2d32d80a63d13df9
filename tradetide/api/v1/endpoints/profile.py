import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import AuditAction
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.user import User
from tradetide.schemas.userSchema import ProfileUpdateRequest, UserResponse
from tradetide.utils.activity import add_audit_log
from tradetide.utils.marketplace.matching import clean_skill_list

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.put("", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Update the caller's profile
    All fields are optional - only provided fields will be updated
    """
    fields = await apply_profile_changes(db, current_user, body)
    await db.commit()

    logger.info(f"Profile updated for {current_user.user_id}: {fields}")
    return UserResponse.model_validate(current_user)


async def apply_profile_changes(db: AsyncSession, user: User, body: ProfileUpdateRequest) -> List[str]:
    """Apply the provided fields to user and stage a profile_updated audit row. The caller commits."""
    changes = body.model_dump(exclude_unset=True)

    if "username" in changes:
        username = (changes["username"] or "").strip()
        if not username:
            raise HTTPException(status_code=400, detail="Username cannot be empty")
        taken_query = await db.execute(
            select(User.user_id).where(
                and_(User.username == username, User.user_id != user.user_id)
            )
        )
        if taken_query.scalar_one_or_none():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already in use")
        user.username = username

    for field in ("skills_offered", "skills_wanted", "badges"):
        if field in changes:
            setattr(user, field, clean_skill_list(changes[field]))

    if "social_links" in changes:
        user.social_links = [link.model_dump() for link in body.social_links or []]

    for field in ("bio", "avatar_url", "cover_photo_url"):
        if field in changes:
            setattr(user, field, changes[field])

    fields = sorted(changes)
    add_audit_log(db, user.user_id, AuditAction.profile_updated, target=user.user_id, details={"fields": fields})
    return fields
