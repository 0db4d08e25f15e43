from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Writing Assistant Backend"

    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_MINUTES: int = 30
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    # One-time codes (registration + password reset)
    OTP_EXPIRE_MINUTES: int = 15
    OTP_RESEND_INTERVAL_SECONDS: int = 120

    # Database
    DATABASE_URL: str

    # Completion API
    GOOGLE_API_KEY: Optional[str] = None
    COMPLETION_MODEL: str = "gemini-2.5-flash"
    COMPLETION_TEMPERATURE: float = 0.7
    COMPLETION_MAX_OUTPUT_TOKENS: int = 1024

    # Email
    SENDGRID_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "no-reply@example.com"
    EMAIL_FROM_NAME: str = "Writing Assistant"

    # Rate limiting (disabled when unset)
    REDIS_URL: Optional[str] = None

    PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
