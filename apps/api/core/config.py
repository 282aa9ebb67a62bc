"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (e.g. sqlite:// for local tests).
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="workout_days")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration
    DB_POOL_SIZE: int = Field(default=20)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Store retry policy (applies to every workout_days / exercises operation)
    STORE_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
    STORE_RETRY_DELAY_S: float = Field(default=0.5, ge=0)

    # Redis Configuration
    REDIS_URL: str = Field(default="redis://redis:6379/0")
    # When False the workout result cache stays in-process.
    WORKOUT_CACHE_USE_REDIS: bool = Field(default=True)

    # JWT Authentication - REQUIRED for token signing
    # Must be set via environment variable, never use default in production
    SECRET_KEY: str = Field(
        default=...,  # Required - no default
        description="JWT signing key. Must be cryptographically secure (32+ chars). "
                    "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    API_RELOAD: bool = Field(default=False)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Workout generation (language model collaborator)
    GOOGLE_AI_API_KEY: Optional[str] = Field(default=None)
    WORKOUT_GENERATION_MODEL: str = Field(default="gemini-2.5-flash")
    WORKOUT_GENERATION_TIMEOUT_S: float = Field(default=20.0, gt=0)
    WORKOUT_GENERATION_TEMPERATURE: float = Field(default=0.7)
    WORKOUT_GENERATION_MAX_TOKENS: int = Field(default=2000)

    # Exercise catalog maintenance
    EXERCISE_BULK_UPSERT_MAX_ITEMS: int = Field(default=300, ge=1)

    # Cache Configuration
    CACHE_TTL_WORKOUT_TODAY: int = Field(default=3600)  # 1 hour
    CACHE_TTL_WORKOUT_WEEK: int = Field(default=6 * 3600)  # 6 hours

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    EXPOSE_API_DOCS: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    CORS_ORIGINS: Optional[str] = Field(default=None)

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.1)  # 10% of transactions
    SENTRY_PROFILES_SAMPLE_RATE: float = Field(default=0.1)


# Global settings instance
settings = Settings()
