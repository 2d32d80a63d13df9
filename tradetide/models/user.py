"""User model for TradeTide - identity, profile and skill lists."""

import uuid
from sqlalchemy import Column, String, Text, JSON

from tradetide.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"
    user_id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    cover_photo_url = Column(String, nullable=True)

    # Lists of skill names, kept free of duplicates by the profile endpoint
    skills_offered = Column(JSON, nullable=False, default=list)
    skills_wanted = Column(JSON, nullable=False, default=list)
    badges = Column(JSON, nullable=False, default=list)
    social_links = Column(JSON, nullable=False, default=list)  # [{"type": "twitter", "url": "..."}]

    def __repr__(self):
        return f"<User {self.user_id}: {self.username}>"
