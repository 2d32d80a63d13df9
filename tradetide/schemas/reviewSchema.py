from datetime import datetime
from typing import List, Optional
from pydantic import Field

from tradetide.schemas.baseSchema import CamelModel
from tradetide.schemas.sessionSchema import SessionResponse
from tradetide.schemas.userSchema import UserSummary


class ReviewCreateRequest(CamelModel):
    """Request schema for reviewing the other participant of a session."""
    session_id: str = Field(..., min_length=1)
    reviewee_id: str = Field(..., min_length=1)
    skill: str = Field(..., min_length=1, max_length=100)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=2000)


class ReviewUpdateRequest(CamelModel):
    skill: Optional[str] = Field(None, min_length=1, max_length=100)
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1, max_length=2000)


class ReviewResponse(CamelModel):
    review_id: str
    reviewer_id: str
    reviewee_id: str
    reviewer: Optional[UserSummary] = None
    reviewee: Optional[UserSummary] = None
    session_id: str
    skill: str
    rating: int
    comment: str
    created_at: datetime


class ReviewStatsResponse(CamelModel):
    average_rating: Optional[float]
    count: int


class UserReviewsResponse(CamelModel):
    reviews: List[ReviewResponse]
    stats: ReviewStatsResponse


class ReviewSummaryResponse(CamelModel):
    total_received: int
    average_rating: Optional[float]
    total_given: int


class PendingReviewsResponse(CamelModel):
    sessions: List[SessionResponse]
    summary: ReviewSummaryResponse
