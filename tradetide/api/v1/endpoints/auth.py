from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from tradetide.core.config import settings
from tradetide.core.database import aget_db
from tradetide.core.ratelimit import limiter
from tradetide.core.security import create_access_token, get_current_user, hash_password, verify_password
from tradetide.models.user import User
from tradetide.schemas.userSchema import AuthResponse, LoginRequest, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=create_access_token(user.user_id),
    )


# -----------------------------
# Register
# -----------------------------
@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(request: Request, body: RegisterRequest, db: AsyncSession = Depends(aget_db)):
    """
    Create an account and return it together with a bearer token
    """
    user = await create_account(db, body)
    await db.commit()

    logger.info(f"Registered user {user.user_id} ({user.email})")
    return auth_response(user)


async def create_account(db: AsyncSession, body: RegisterRequest) -> User:
    """Validate uniqueness and stage a new user on the session. The caller commits."""
    email = body.email.lower()
    username = body.username.strip()
    if not username:
        raise HTTPException(status_code=400, detail="All fields are required")

    existing_query = await db.execute(
        select(User).where(or_(User.email == email, User.username == username))
    )
    existing = existing_query.scalars().first()
    if existing:
        detail = "Email already in use" if existing.email == email else "Username already in use"
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(body.password),
        skills_offered=[],
        skills_wanted=[],
        badges=[],
        social_links=[],
    )
    db.add(user)
    await db.flush()
    return user


# -----------------------------
# Login
# -----------------------------
@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(request: Request, body: LoginRequest, db: AsyncSession = Depends(aget_db)):
    """
    Exchange email and password for a bearer token
    """
    user_query = await db.execute(select(User).where(User.email == body.email.lower()))
    user = user_query.scalar_one_or_none()

    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info(f"User {user.user_id} logged in")
    return auth_response(user)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user."""
    return UserResponse.model_validate(current_user)
