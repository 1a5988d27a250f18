"""Application configuration from environment variables."""

from functools import lru_cache
from pathlib import Path
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict

from mmhealth.core.constants import WINNERS_BIBLE_BUCKET


class Settings(BaseSettings):
    """Settings loaded from environment (and .env file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "MM Health Tracker API"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Database (Supabase Postgres)
    database_host: str = "localhost"
    database_port: int = 5432
    database_user: str = "postgres"
    database_password: str = ""  # Set in .env - never commit
    database_name: str = "postgres"
    database_ssl_mode: str = "require"
    # Full async URL; when set it wins over the host/port fields (e.g. sqlite+aiosqlite for tests)
    database_url_override: str = ""

    # Pool (production tuning)
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # CORS: comma-separated list of allowed origins in production
    cors_origins: str = ""

    # Auth: Supabase-issued JWTs (HS256, signed with the project's JWT secret)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Object storage for Winners Bible images: "local" or "supabase"
    storage_backend: str = "local"
    storage_bucket: str = WINNERS_BIBLE_BUCKET
    media_root: Path = Path("media")
    media_url_prefix: str = "/media"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Query cache
    query_stale_seconds: float = 300.0
    daily_stale_seconds: float = 120.0
    query_retry: int = 1
    # Per-profile caches and contexts kept in memory (least recently used evicted)
    max_cached_profiles: int = 1000

    def _build_db_url(self, scheme: str, ssl_query: str) -> str:
        user = quote_plus(self.database_user)
        password = quote_plus(self.database_password)
        return (
            f"{scheme}://{user}:{password}@{self.database_host}:{self.database_port}"
            f"/{self.database_name}?{ssl_query}"
        )

    @property
    def database_url(self) -> str:
        """Synchronous URL for Alembic and tooling."""
        return self._build_db_url(scheme="postgresql", ssl_query=f"sslmode={self.database_ssl_mode}")

    @property
    def async_database_url(self) -> str:
        """Async URL for FastAPI (asyncpg driver)."""
        if self.database_url_override:
            return self.database_url_override
        # asyncpg takes the libpq sslmode names (disable, prefer, require, ...) as ``ssl``
        return self._build_db_url(scheme="postgresql+asyncpg", ssl_query=f"ssl={self.database_ssl_mode}")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
