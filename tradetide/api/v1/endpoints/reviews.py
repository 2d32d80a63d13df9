import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tradetide.constants.constants import DEFAULT_PAGE_SIZE, AuditAction, NotificationType
from tradetide.core.database import aget_db
from tradetide.core.security import get_current_user
from tradetide.models.review import Review
from tradetide.models.session import SkillSession
from tradetide.models.user import User
from tradetide.schemas.reviewSchema import (
    PendingReviewsResponse,
    ReviewCreateRequest,
    ReviewResponse,
    ReviewStatsResponse,
    ReviewSummaryResponse,
    ReviewUpdateRequest,
    UserReviewsResponse,
)
from tradetide.schemas.sessionSchema import SessionResponse
from tradetide.utils.activity import add_audit_log, add_notification
from tradetide.utils.filters import date_range
from tradetide.utils.pagination import normalize_page, page_offset, total_pages
from tradetide.utils.reviews.stats import pending_review_sessions, review_stats, summarize_reviews

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])


def snapshot(review: Review) -> dict:
    return ReviewResponse.model_validate(review).model_dump(
        by_alias=True, mode="json", exclude={"reviewer", "reviewee"}
    )


async def get_own_review(db: AsyncSession, review_id: str, user: User) -> Review:
    result = await db.execute(select(Review).where(Review.review_id == review_id))
    review = result.scalar_one_or_none()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    if review.reviewer_id != user.user_id:
        raise HTTPException(status_code=403, detail="Only the author can change this review")
    return review


@router.get("")
async def list_reviews(
    reviewer: Optional[str] = None,
    reviewee: Optional[str] = None,
    skill: Optional[str] = None,
    min_rating: Optional[int] = Query(None, alias="minRating", ge=1, le=5),
    max_rating: Optional[int] = Query(None, alias="maxRating", ge=1, le=5),
    created_before: Optional[datetime] = Query(None, alias="createdBefore"),
    created_after: Optional[datetime] = Query(None, alias="createdAfter"),
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Filtered, paginated reviews, newest first"""
    conditions = []
    if reviewer:
        conditions.append(Review.reviewer_id == reviewer)
    if reviewee:
        conditions.append(Review.reviewee_id == reviewee)
    if skill:
        conditions.append(Review.skill == skill.strip())
    if min_rating is not None:
        conditions.append(Review.rating >= min_rating)
    if max_rating is not None:
        conditions.append(Review.rating <= max_rating)
    conditions.extend(date_range(Review.created_at, after=created_after, before=created_before))

    query = select(Review)
    if conditions:
        query = query.where(and_(*conditions))

    result = await db.execute(query.order_by(Review.created_at.desc()))
    reviews = result.scalars().all()

    page, limit = normalize_page(page, limit)
    offset = page_offset(page, limit)
    return {
        "reviews": [ReviewResponse.model_validate(r) for r in reviews[offset:offset + limit]],
        "total": len(reviews),
        "page": page,
        "totalPages": total_pages(len(reviews), limit),
    }


@router.get("/user/{user_id}", response_model=UserReviewsResponse)
async def reviews_for_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Reviews a user received, with their average rating"""
    result = await db.execute(
        select(Review).where(Review.reviewee_id == user_id).order_by(Review.created_at.desc())
    )
    reviews = result.scalars().all()
    return UserReviewsResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        stats=ReviewStatsResponse(**review_stats(reviews, user_id)),
    )


@router.get("/pending", response_model=PendingReviewsResponse)
async def pending_reviews(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """Completed sessions still waiting for the caller's review"""
    user_id = current_user.user_id
    sessions_query = await db.execute(
        select(SkillSession)
        .where(or_(SkillSession.scheduled_by == user_id, SkillSession.participant_id == user_id))
        .order_by(SkillSession.date.desc())
    )
    reviews_query = await db.execute(
        select(Review).where(or_(Review.reviewer_id == user_id, Review.reviewee_id == user_id))
    )
    reviews = reviews_query.scalars().all()
    return PendingReviewsResponse(
        sessions=[
            SessionResponse.model_validate(s)
            for s in pending_review_sessions(sessions_query.scalars().all(), reviews, user_id)
        ],
        summary=ReviewSummaryResponse(**summarize_reviews(reviews, user_id)),
    )


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    body: ReviewCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    """
    Review the other participant of a session
    One review per reviewer and session
    """
    session_query = await db.execute(select(SkillSession).where(SkillSession.session_id == body.session_id))
    session = session_query.scalar_one_or_none()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if not session.involves(current_user.user_id):
        raise HTTPException(status_code=403, detail="Only session participants can leave a review")
    if body.reviewee_id != session.counterparty_of(current_user.user_id):
        raise HTTPException(status_code=400, detail="Reviewee must be the other session participant")

    existing = await db.execute(
        select(Review.review_id).where(
            and_(Review.reviewer_id == current_user.user_id, Review.session_id == session.session_id)
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You already reviewed this session")

    reviewee_query = await db.execute(select(User).where(User.user_id == body.reviewee_id))
    reviewee = reviewee_query.scalar_one_or_none()
    if not reviewee:
        raise HTTPException(status_code=404, detail="Reviewee not found")

    review = Review(
        reviewer_id=current_user.user_id,
        reviewee_id=reviewee.user_id,
        reviewer=current_user,
        reviewee=reviewee,
        session_id=session.session_id,
        skill=body.skill.strip(),
        rating=body.rating,
        comment=body.comment.strip(),
    )
    db.add(review)
    try:
        await db.flush()
    except IntegrityError:
        # concurrent duplicate slipped past the check above
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You already reviewed this session")

    add_notification(
        db,
        reviewee.user_id,
        NotificationType.review,
        f"{current_user.username} left you a {body.rating}-star review for {review.skill}",
    )
    add_audit_log(db, current_user.user_id, AuditAction.review_created, review.review_id, snapshot(review))
    await db.commit()

    logger.info(f"Review {review.review_id} by {current_user.user_id} for {reviewee.user_id}")
    return ReviewResponse.model_validate(review)


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    body: ReviewUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    review = await get_own_review(db, review_id, current_user)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    for field, value in changes.items():
        setattr(review, field, value.strip() if isinstance(value, str) else value)

    add_audit_log(db, current_user.user_id, AuditAction.review_updated, review.review_id, changes)
    await db.commit()
    return ReviewResponse.model_validate(review)


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(aget_db)
):
    review = await get_own_review(db, review_id, current_user)

    add_audit_log(db, current_user.user_id, AuditAction.review_deleted, review.review_id, snapshot(review))
    await db.delete(review)
    await db.commit()

    logger.info(f"Review {review_id} deleted by {current_user.user_id}")
    return {"success": True}
