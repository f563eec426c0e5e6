"""
Application configuration management
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "StudySpace"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Default to production-safe
    API_PREFIX: str = "/api/v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str  # Must be provided via environment

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False
    STORE_READ_RETRIES: int = 3

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 50
    REDIS_BREAKER_FAILURES: int = 5
    REDIS_BREAKER_RESET_SECONDS: int = 30

    # JWT (tokens are issued by the external auth service)
    JWT_SECRET_KEY: str  # Must be provided via environment
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    @field_validator('JWT_SECRET_KEY')
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080", "http://localhost:5173"]

    # Monitoring
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Seat catalog
    TIMEZONE: str = "Asia/Kolkata"
    SEAT_COUNT: int = 50
    FULL_DAY_SEAT_MAX: int = 13  # seats 1..13 form the 24-hour pool
    DAY_SLOT_START_HOUR: int = 9
    NIGHT_SLOT_START_HOUR: int = 21

    # Reservations
    PENDING_TIMEOUT_MINUTES: int = 30
    MIN_MEMBERSHIP_MONTHS: int = 1
    MAX_MEMBERSHIP_MONTHS: int = 12
    FIXED_MONTHLY_COST: int = 3300
    FLOATING_MONTHLY_COST: int = 2200
    EXPIRING_WINDOW_DAYS: int = 30

    # Per-seat write serialisation
    SEAT_LOCK_BACKEND: str = "redis"
    SEAT_LOCK_TTL_SECONDS: int = 30

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("SEAT_LOCK_BACKEND")
    @classmethod
    def validate_lock_backend(cls, v: str) -> str:
        if v not in ("redis", "local"):
            raise ValueError("SEAT_LOCK_BACKEND must be 'redis' or 'local'")
        return v

    @field_validator("NIGHT_SLOT_START_HOUR")
    @classmethod
    def validate_slot_hours(cls, v: int, info) -> int:
        day_start = info.data.get("DAY_SLOT_START_HOUR", 9)
        if not (0 <= day_start < v <= 23):
            raise ValueError("NIGHT_SLOT_START_HOUR must be after DAY_SLOT_START_HOUR and within a day")
        return v

    @property
    def is_testing(self) -> bool:
        return self.APP_ENV == "testing"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Create global settings instance
settings = Settings()
