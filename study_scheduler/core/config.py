"""Configuration management using Pydantic settings."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    PROJECT_NAME: str = "Study Scheduler Service"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Database settings
    DATABASE_URL: str = Field(..., description="Async database URL, e.g. postgresql+asyncpg://...")
    DB_ECHO: bool = Field(default=False, description="Enable SQLAlchemy query logging")

    # JWT settings
    JWT_SECRET_KEY: str = Field(..., description="Secret key for JWT tokens")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Security settings
    BCRYPT_ROUNDS: int = 12
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 5

    # Schema
    DB_AUTO_CREATE: bool = Field(default=False, description="Create tables on startup instead of via Alembic")

    # Scheduling
    SCHEDULE_MAX_HORIZON_DAYS: int = Field(
        default=3650, description="Refuse to schedule sessions further out than this"
    )

    # Billing
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    CLIENT_URL: str = "http://localhost:5173"
    REQUIRE_SUBSCRIPTION: bool = True
    FREE_TRIAL_DAYS: int = 7


@lru_cache
def get_settings() -> Settings:
    return Settings()
