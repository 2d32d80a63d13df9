import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.api.v1.endpoints.auth import create_account
from tradetide.api.v1.endpoints.profile import apply_profile_changes
from tradetide.constants.constants import DEFAULT_PAGE_SIZE, SkillMatchType
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.user import User
from tradetide.schemas.userSchema import ProfileUpdateRequest, RegisterRequest, UserResponse
from tradetide.utils.marketplace.matching import filter_by_skill, skill_set
from tradetide.utils.filters import date_range, split_csv
from tradetide.utils.pagination import paginate, normalize_page

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    skill: Optional[str] = None,
    type: SkillMatchType = SkillMatchType.any,
    badges: Optional[str] = Query(None, description="Comma-separated; users holding any of them"),
    name: Optional[str] = None,
    email: Optional[str] = None,
    created_before: Optional[datetime] = Query(None, alias="createdBefore"),
    created_after: Optional[datetime] = Query(None, alias="createdAfter"),
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Browse users with exact, set-membership, substring and date-range filters
    """
    conditions = []
    if email:
        conditions.append(User.email == email.lower())
    if name:
        conditions.append(func.lower(User.username).contains(name.lower()))
    conditions.extend(date_range(User.created_at, after=created_after, before=created_before))

    query = select(User)
    if conditions:
        query = query.where(and_(*conditions))
    result = await db.execute(query.order_by(User.created_at.desc()))
    users = list(result.scalars().all())

    # skill and badge lists live in JSON columns, filtered here
    users = filter_by_skill(users, skill, type)
    wanted_badges = skill_set(split_csv(badges))
    if wanted_badges:
        users = [u for u in users if skill_set(u.badges) & wanted_badges]

    page, limit = normalize_page(page, limit)
    page_items, total, pages = paginate(users, page, limit)
    return {
        "users": [UserResponse.model_validate(u) for u in page_items],
        "total": total,
        "page": page,
        "totalPages": pages,
    }


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: RegisterRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Create a user account without issuing a token
    Same rules as registration: 409 on a duplicate email or username
    """
    user = await create_account(db, body)
    await db.commit()

    logger.info(f"User {user.user_id} created by {current_user.user_id}")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Update a user by id
    Only the user themselves may do this
    """
    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.user_id != current_user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only update your own account")

    fields = await apply_profile_changes(db, user, body)
    await db.commit()

    logger.info(f"User {user.user_id} updated: {fields}")
    return UserResponse.model_validate(user)
