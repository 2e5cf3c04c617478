"""Client Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can come from a SAVINGS_-prefixed environment variable or .env
    - get_settings() is cached (lru_cache): single instance per process
    - api_base_url never ends with a slash (paths are joined with a leading one)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults match a local development server on port 8080
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from savings_client.core.domain_types import (
    DEFAULT_POLL_INTERVAL_SECONDS, SESSION_STORAGE_KEY, OverlapPolicy,
)


class Settings(BaseSettings):
    """Client settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SAVINGS_", env_file=".env", case_sensitive=False,
        extra="ignore",
    )

    # Remote service
    api_base_url: str = "http://localhost:8080/api"
    request_timeout_seconds: float = Field(10.0, gt=0)

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Polling
    notification_poll_interval_seconds: float = Field(
        DEFAULT_POLL_INTERVAL_SECONDS, gt=0,
    )
    poll_overlap_policy: OverlapPolicy = OverlapPolicy.SKIP

    # Mutations: serialize per entity kind so they apply in submission order
    serialize_mutations: bool = True

    # Persisted session
    session_storage_path: Path = Path(".savings_session.json")
    session_storage_key: str = SESSION_STORAGE_KEY

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
