from datetime import datetime
from typing import List, Optional
from pydantic import EmailStr, Field

from tradetide.constants.constants import MIN_PASSWORD_LENGTH
from tradetide.schemas.baseSchema import CamelModel


class SocialLink(CamelModel):
    type: str = Field(..., min_length=1, max_length=50)
    url: str = Field(..., min_length=1, max_length=500)


class UserSummary(CamelModel):
    """Minimal user shape embedded in chats, messages and requests."""
    user_id: str
    username: str
    email: str


class UserResponse(CamelModel):
    user_id: str
    username: str
    email: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    skills_offered: List[str] = []
    skills_wanted: List[str] = []
    badges: List[str] = []
    social_links: List[SocialLink] = []
    created_at: datetime


class MarketplaceUserResponse(UserResponse):
    rating: Optional[float] = None
    review_count: int = 0
    is_mutual_match: bool = False
    match_quality: float = 0.0


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class ProfileUpdateRequest(CamelModel):
    """All fields are optional - only provided fields are updated."""
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    bio: Optional[str] = Field(None, max_length=1000)
    skills_offered: Optional[List[str]] = None
    skills_wanted: Optional[List[str]] = None
    avatar_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    social_links: Optional[List[SocialLink]] = None
    badges: Optional[List[str]] = None
