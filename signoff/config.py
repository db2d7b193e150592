"""
Signoff settings, read from the environment or a local .env file.
"""
import secrets
from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List

# Stands in for SECRET_KEY outside production; tokens die with the process
_EPHEMERAL_SECRET = secrets.token_urlsafe(32)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Signoff API"
    debug: bool = False
    environment: str = "development"
    default_locale: str = "fr"  # fr or en, for callers without a profile locale

    secret_key: str = _EPHEMERAL_SECRET
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7

    database_url: str = "sqlite:///./signoff.db"

    # Dashboard front-end only
    cors_origins: List[str] = ["http://localhost:3000"]

    login_rate_limit: str = "5/minute"
    register_rate_limit: str = "3/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
if settings.environment == "production" and settings.secret_key == _EPHEMERAL_SECRET:
    raise ValueError("SECRET_KEY must be set in production")
