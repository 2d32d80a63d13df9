import secrets
import socket
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
import uvicorn
from contextlib import asynccontextmanager

from tradetide.core.config import settings
from tradetide.core.database import session_manager, aget_db
from tradetide.core.ratelimit import limiter
from tradetide.core.security import hash_password
from tradetide.models.user import User
from tradetide.services.RelayService import RelayService

from tradetide.api.v1.endpoints.auth import router as auth_router
from tradetide.api.v1.endpoints.profile import router as profile_router
from tradetide.api.v1.endpoints.users import router as users_router
from tradetide.api.v1.endpoints.marketplace import router as marketplace_router
from tradetide.api.v1.endpoints.chat import router as chat_router
from tradetide.api.v1.endpoints.barterrequests import router as barter_router
from tradetide.api.v1.endpoints.reviews import router as reviews_router
from tradetide.api.v1.endpoints.sessions import router as sessions_router
from tradetide.api.v1.endpoints.notifications import router as notifications_router
from tradetide.api.v1.endpoints.auditlogs import router as auditlogs_router
from tradetide.api.v1.endpoints.realtime import router as realtime_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def ensure_demo_user():
    """Create the account the demo token resolves to, if it is missing."""
    async with session_manager.get_session() as db:
        result = await db.execute(select(User).where(User.user_id == settings.DEMO_USER_ID))
        if result.scalar_one_or_none():
            return

        email_taken = await db.execute(select(User.user_id).where(User.email == settings.DEMO_USER_EMAIL))
        if email_taken.scalar_one_or_none():
            logger.warning(f"⚠️ {settings.DEMO_USER_EMAIL} belongs to another account; demo user not created")
            return

        db.add(User(
            user_id=settings.DEMO_USER_ID,
            username="demo",
            email=settings.DEMO_USER_EMAIL,
            password_hash=hash_password(secrets.token_urlsafe(16)),
            bio="Demo account",
            skills_offered=[],
            skills_wanted=[],
            badges=[],
            social_links=[],
        ))
        logger.info(f"👤 Demo user {settings.DEMO_USER_ID} created")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    try:
        logger.info("🚀 Starting TradeTide application...")

        logger.info("🔌 Initializing database connection pool...")
        await session_manager.init()
        logger.info("✅ Database ready, tables created")

        if settings.DEMO_TOKEN_ACTIVE:
            logger.info("🔑 Demo token enabled")
            await ensure_demo_user()

        app.state.relay = RelayService(session_scope=session_manager.get_session)
        logger.info("📡 Real-time relay ready")

    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 TradeTide application startup complete")
        yield
    finally:
        try:
            logger.info("🛑 Beginning application shutdown...")

            await app.state.relay.close()

            logger.info("🔌 Closing database connections...")
            await session_manager.close()
            logger.info("✅ Database connections closed cleanly")
        except Exception as e:
            logger.error(f"⚠️ Error during shutdown: {str(e)}")
            raise
        finally:
            logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="TradeTide API",
    description="API for TradeTide - skill bartering marketplace",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.get("/api/health", tags=["Health Check"])
async def health_check(db: AsyncSession = Depends(aget_db)):
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": "TradeTide API",
            "database": "connected",
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "TradeTide API",
            "database": "disconnected",
        }


app.include_router(auth_router, prefix="/api", tags=["Authentication"])
app.include_router(profile_router, prefix="/api", tags=["Profile"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(marketplace_router, prefix="/api", tags=["Marketplace"])
app.include_router(chat_router, prefix="/api", tags=["Chat"])
app.include_router(barter_router, prefix="/api", tags=["Barter Requests"])
app.include_router(reviews_router, prefix="/api", tags=["Reviews"])
app.include_router(sessions_router, prefix="/api", tags=["Sessions"])
app.include_router(notifications_router, prefix="/api", tags=["Notifications"])
app.include_router(auditlogs_router, prefix="/api", tags=["Audit Logs"])
app.include_router(realtime_router)

logger.info(f"✅ Loaded {len(app.routes)} routes")


def find_available_port(host: str, start: int, attempts: int) -> int:
    """First port in [start, start + attempts) that can be bound on host."""
    for port in range(start, start + max(1, attempts)):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                logger.warning(f"⚠️ Port {port} is in use, trying {port + 1}")
                continue
            return port
    raise RuntimeError(f"No free port in {start}-{start + attempts - 1}")


def run():
    port = find_available_port(settings.HOST, settings.PORT, settings.PORT_RETRIES)
    logger.info(f"🌊 Serving TradeTide on {settings.HOST}:{port}")
    uvicorn.run(app, host=settings.HOST, port=port)


if __name__ == "__main__":
    run()
