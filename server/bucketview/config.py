# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    Passed into create_app(); nothing reads these values at import time.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env")

    # ── Object store ─────────────────────────────────────────────────────────
    # GCS bucket holding the browsable objects. Empty = binding missing,
    # every browse request answers 500.
    bucket_name: str = ""

    # ── Rate limiting ────────────────────────────────────────────────────────
    # "" = disabled, "memory" = in-process counters, "redis://..." = Redis.
    rate_limit_store: str = ""
    rate_limit_count: int = Field(default=30, ge=1)
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    rate_limit_key_prefix: str = "ratelimit:"
    # True = let requests through when the counter store is unreachable.
    rate_limit_fail_open: bool = True
    # Set by Cloudflare; falls back to the socket peer address when absent.
    client_ip_header: str = "CF-Connecting-IP"

    # ── Listing / download ───────────────────────────────────────────────────
    page_size: int = Field(default=10, ge=1)
    listing_title: str = "Files"
    download_cache_max_age: int = Field(default=3600, ge=0)
    download_chunk_size: int = Field(default=256 * 1024, ge=1)

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True  # JSON logs for Cloud Logging

    @property
    def rate_limit_enabled(self) -> bool:
        return bool(self.rate_limit_store.strip())


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
