"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Audit queue policy defaults: 3 attempts, 2000 ms backoff base,
      1 h / 1000 completed retention, 24 h failed retention

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Separate audit_redis_url: the queue may live on a different Redis than the cache;
      empty means "same as redis_url"
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from catalog.core.retry_policy import AuditQueuePolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://catalog:catalog@db:5432/catalog"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Cache
    redis_url: str = "redis://redis:6379/0"
    cache_backend: Literal["redis", "memory"] = "redis"
    cache_ttl_seconds: int = Field(300, gt=0)

    # Audit queue
    audit_queue_backend: Literal["redis", "memory"] = "redis"
    audit_redis_url: str = ""
    audit_queue_name: str = "activity-log"
    audit_max_attempts: int = Field(3, ge=1)
    audit_backoff_base_ms: int = Field(2000, ge=0)
    audit_completed_retention_seconds: int = 3600
    audit_completed_retention_count: int = 1000
    audit_failed_retention_seconds: int = 86_400
    audit_worker_enabled: bool = True
    audit_poll_timeout_seconds: float = 1.0

    # Notifier
    notifier_listener_buffer: int = Field(100, ge=1)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def audit_queue_url(self) -> str:
        return self.audit_redis_url or self.redis_url

    def audit_policy(self) -> AuditQueuePolicy:
        return AuditQueuePolicy(
            max_attempts=self.audit_max_attempts,
            backoff_base_ms=self.audit_backoff_base_ms,
            completed_retention_seconds=self.audit_completed_retention_seconds,
            completed_retention_count=self.audit_completed_retention_count,
            failed_retention_seconds=self.audit_failed_retention_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
