"""Configuration for Postboard."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Postboard configuration settings."""

    # Web server
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = Field(default=1337, ge=1, le=65535)

    # Sessions
    SESSION_SECRET: str = "keyboardCat"
    SESSION_COOKIE: str = "sid"
    SESSION_TTL_SECONDS: int = Field(default=86400, ge=1)

    # PostgreSQL
    DB_HOST: str = "db"
    DB_PORT: int = 5432
    DB_NAME: str = "postgres"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    # Overrides the DB_* composition, e.g. sqlite+aiosqlite:///./data/postboard.db
    DATABASE_URL: Optional[str] = None

    # Redis (session store)
    CACHE_HOST: str = "cache"
    CACHE_PORT: int = 6379

    # MinIO / S3 (uploads)
    BLOB_HOST: str = "blobstore"
    BLOB_PORT: int = 9000
    BLOB_USER: str = "minioadmin"
    BLOB_PASSWORD: str = "minioadmin"
    BLOB_BUCKET: str = "uploads"
    BLOB_SECURE: bool = False

    # bcrypt cost factor
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)

    # Startup readiness gate (seconds)
    READINESS_TIMEOUT: float = Field(default=60.0, gt=0)
    READINESS_INTERVAL: float = Field(default=0.25, gt=0)

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def cache_url(self) -> str:
        return f"redis://{self.CACHE_HOST}:{self.CACHE_PORT}/0"

    @property
    def blob_endpoint(self) -> str:
        scheme = "https" if self.BLOB_SECURE else "http"
        return f"{scheme}://{self.BLOB_HOST}:{self.BLOB_PORT}"


@lru_cache
def get_settings() -> Settings:
    """Get the cached Settings instance."""
    return Settings()
