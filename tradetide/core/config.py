import logging
from dotenv import load_dotenv
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings
from typing import ClassVar, List

# Load environment variables from .env file
load_dotenv(".env")
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Class to store all the settings of the TradeTide application."""

    # ------------------------------
    # Database
    # ------------------------------
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./tradetide.db")
    DB_ECHO: bool = Field(default=False)

    # ------------------------------
    # Auth
    # ------------------------------
    SECRET_KEY: str = Field(default="changeme")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(default=7)
    AUTH_RATE_LIMIT: str = Field(default="20/minute")

    # Demo backdoor: a fixed bearer token that resolves to a fixed user.
    DEMO_TOKEN_ENABLED: bool = Field(default=True)
    DEMO_TOKEN: str = Field(default="mock-jwt-token")
    DEMO_USER_ID: str = Field(default="64b7c2f2e4b0c2a1d8e4f123")
    DEMO_USER_EMAIL: str = Field(default="demo@tradetide.app")

    # ------------------------------
    # Server
    # ------------------------------
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=5000)
    PORT_RETRIES: int = Field(default=10)
    FRONTEND_URL: str = Field(default="http://localhost:5173")

    # ------------------------------
    # Environment
    # ------------------------------
    ENVIRONMENT: str = Field(default="development")

    # ------------------------------
    # Database models
    # ------------------------------
    DB_MODELS: ClassVar[List[str]] = [
        "tradetide.models.user",
        "tradetide.models.chat",
        "tradetide.models.barterrequest",
        "tradetide.models.session",
        "tradetide.models.review",
        "tradetide.models.notifications",
        "tradetide.models.auditlog",
    ]

    # ------------------------------
    # Computed Fields
    # ------------------------------
    @computed_field
    @property
    def DEMO_TOKEN_ACTIVE(self) -> bool:
        """The demo token never works in production, whatever the flag says."""
        return self.DEMO_TOKEN_ENABLED and self.ENVIRONMENT != "production"

    class Config:
        """Configuration for the settings class."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
settings = Settings()
