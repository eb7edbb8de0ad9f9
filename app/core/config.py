"""Application configuration."""
from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Order Management API"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis (invoice queue). Unset means the in-process queue is used.
    REDIS_URL: Optional[str] = None
    INVOICE_QUEUE_NAME: str = "invoice_tasks"

    # Orders
    ORDER_NUMBER_PREFIX: str = "ORD"
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5

    # Invoice task
    INVOICE_TASK_MAX_ATTEMPTS: int = 3
    INVOICE_TASK_TIMEOUT: float = 60.0  # seconds per attempt
    INVOICE_SIMULATED_DURATION: float = 2.0
    # A reservation idle this long belongs to a dead worker and is put back
    INVOICE_TASK_RECOVER_IDLE: float = 120.0  # seconds, above INVOICE_TASK_TIMEOUT

    # JWT (REQUIRED)
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",")]
        return v

    @field_validator("INVOICE_TASK_MAX_ATTEMPTS", "ORDER_NUMBER_MAX_ATTEMPTS")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    class Config:
        env_file = ".env"      # Local only
        case_sensitive = True
        extra = "ignore"      # Ignore unrelated env vars


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
