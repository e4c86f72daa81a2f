"""
Application configuration using Pydantic Settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Union


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./libseat.db"

    # Application
    APP_NAME: str = "Library Seat Reservation System"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Civil timezone used for every date/time computation
    TIMEZONE: str = "Asia/Shanghai"

    # Reservation policy
    MIN_AVAILABLE_MINUTES: int = 30
    BUFFER_MINUTES: int = 15
    CHECKIN_WINDOW_MINUTES: int = 15
    MAX_ACTIVE_RESERVATIONS_PER_USER: int = 3
    ADVANCE_BOOKING_OPEN_HOUR: int = 20
    LOOKAHEAD_HOURS: int = 24

    # Seat list cache
    SEATS_CACHE_BACKEND: str = "memory"  # memory | redis
    SEATS_CACHE_TTL_SECONDS: float = 3.0
    SEATS_CACHE_MAX_KEYS: int = 32

    # Pending reservation cleanup
    PENDING_CLEANUP_INTERVAL_SECONDS: float = 60.0
    EXPIRY_WORKER_ENABLED: bool = True

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Logging
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: Union[List[str], str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('SEATS_CACHE_MAX_KEYS')
    @classmethod
    def clamp_cache_keys(cls, v: int) -> int:
        return max(8, v)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore',
    )


# Global settings instance
settings = Settings()
