import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import asyncio
import logging
from sqlalchemy import select
from tradetide.core.database import session_manager
from tradetide.core.security import hash_password
from tradetide.models.user import User

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SEED_PASSWORD = "password123"

SEED_USERS = [
    {
        "username": "Alice",
        "email": "alice@example.com",
        "bio": "Digital artist and language enthusiast",
        "skills_offered": ["Digital Art", "French Lessons"],
        "skills_wanted": ["Web Development", "Yoga"],
    },
    {
        "username": "Bob",
        "email": "bob@example.com",
        "bio": "Web developer and fitness coach",
        "skills_offered": ["Web Development", "Fitness Training"],
        "skills_wanted": ["Digital Art", "Photography"],
    },
    {
        "username": "Charlie",
        "email": "charlie@example.com",
        "bio": "Photographer and yoga instructor",
        "skills_offered": ["Photography", "Yoga"],
        "skills_wanted": ["Cooking Classes", "French Lessons"],
    },
    {
        "username": "Diana",
        "email": "diana@example.com",
        "bio": "Cooking instructor and gardening enthusiast",
        "skills_offered": ["Cooking Classes", "Gardening Tips"],
        "skills_wanted": ["Fitness Training", "Web Development"],
    },
    {
        "username": "Evan",
        "email": "evan@example.com",
        "bio": "Music teacher and coding enthusiast",
        "skills_offered": ["Piano Lessons", "Guitar Lessons"],
        "skills_wanted": ["Web Development", "Digital Art"],
    },
]


async def seed_users(db) -> int:
    """Insert the demo users, overwriting the profile of any that already exist."""
    for data in SEED_USERS:
        result = await db.execute(select(User).where(User.email == data["email"]))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(badges=[], social_links=[])
            db.add(user)
            logger.info(f"➕ Adding {data['email']}")
        else:
            logger.info(f"♻️ Replacing {data['email']}")

        for field, value in data.items():
            setattr(user, field, value)
        user.password_hash = hash_password(SEED_PASSWORD)

    await db.commit()
    return len(SEED_USERS)


async def main():
    await session_manager.init()
    try:
        async with session_manager.get_session() as db:
            count = await seed_users(db)
        logger.info(f"✅ Seeded {count} users (password: {SEED_PASSWORD})")
    finally:
        await session_manager.close()


if __name__ == "__main__":
    asyncio.run(main())
