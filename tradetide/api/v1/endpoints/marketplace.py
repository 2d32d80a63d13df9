import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import MarketplaceSort
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.review import Review
from tradetide.models.user import User
from tradetide.schemas.userSchema import MarketplaceUserResponse, UserResponse
from tradetide.utils.marketplace.matching import (
    filter_by_any_skill,
    is_mutual_match,
    match_quality,
    mutual_matches,
    sort_users,
)
from tradetide.utils.filters import split_csv
from tradetide.utils.reviews.stats import ratings_by_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/marketplace", tags=["marketplace"])


async def load_other_users(db: AsyncSession, current_user: User):
    result = await db.execute(select(User).where(User.user_id != current_user.user_id))
    return list(result.scalars().all())


async def load_ratings(db: AsyncSession):
    result = await db.execute(select(Review))
    return ratings_by_user(result.scalars().all())


def annotate(current_user: User, user: User, ratings) -> dict:
    """Profile fields plus rating and match annotations, snake_case for sorting."""
    stats = ratings.get(user.user_id, {})
    entry = UserResponse.model_validate(user).model_dump()
    entry.update(
        rating=stats.get("average_rating"),
        review_count=stats.get("count", 0),
        is_mutual_match=is_mutual_match(current_user, user),
        match_quality=match_quality(current_user, user),
    )
    return entry


@router.get("/users")
async def marketplace_users(
    skills_offered: Optional[str] = Query(None, alias="skillsOffered"),
    skills_wanted: Optional[str] = Query(None, alias="skillsWanted"),
    sort: Optional[MarketplaceSort] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Every other user, annotated with rating and match data
    skillsOffered / skillsWanted keep users offering (wanting) any listed skill
    """
    users = await load_other_users(db, current_user)
    users = filter_by_any_skill(users, split_csv(skills_offered), split_csv(skills_wanted))
    ratings = await load_ratings(db)

    entries = sort_users([annotate(current_user, u, ratings) for u in users], sort)
    return {
        "users": [MarketplaceUserResponse.model_validate(e) for e in entries],
        "total": len(entries),
    }


@router.get("/matches")
async def marketplace_matches(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """The caller's mutual matches, best match first"""
    users = await load_other_users(db, current_user)
    ratings = await load_ratings(db)
    matches = [annotate(current_user, u, ratings) for u in mutual_matches(current_user, users)]
    return {
        "users": [MarketplaceUserResponse.model_validate(e) for e in matches],
        "total": len(matches),
    }
