from __future__ import annotations

from uuid import uuid4

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env(name: str) -> AliasChoices:
    """Accept both ``OSSWISH_<NAME>`` and the bare deployment variable ``<NAME>``."""
    return AliasChoices(f"OSSWISH_{name}", name)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OSSWISH_", env_file=".env", extra="ignore")

    app_name: str = "oss-wishlist-cache"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 4324
    log_level: str = "INFO"

    # Instance ID for distributed deployments
    instance_id: str = Field(default_factory=lambda: str(uuid4())[:8])

    # In-memory TTL cache
    cache_ttl_seconds: int = Field(default=45, validation_alias=_env("CACHE_TTL_SECONDS"))

    # Durable snapshot (all-wishlists.json)
    snapshot_path: str = Field(
        default="public/wishlist-cache/all-wishlists.json",
        validation_alias=_env("SNAPSHOT_PATH"),
    )
    snapshot_freshness_seconds: int = Field(
        default=600, validation_alias=_env("SNAPSHOT_FRESHNESS_SECONDS")
    )  # 10 minutes

    # Live fetch
    fetch_timeout_seconds: float = Field(
        default=5.0, validation_alias=_env("FETCH_TIMEOUT_SECONDS")
    )
    snapshot_source: str = Field(default="github", validation_alias=_env("SNAPSHOT_SOURCE"))

    # GitHub Issues source
    github_token: str | None = Field(default=None, validation_alias=_env("GITHUB_TOKEN"))
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias=_env("GITHUB_API_URL")
    )
    github_org: str = Field(default="oss-wishlist", validation_alias=_env("GITHUB_ORG"))
    github_repo: str = Field(default="wishlists", validation_alias=_env("GITHUB_REPO"))
    approved_label: str = Field(
        default="approved-wishlist", validation_alias=_env("APPROVED_LABEL")
    )

    # Published snapshot source (snapshot_source="published")
    published_snapshot_url: str = Field(
        default="https://raw.githubusercontent.com/oss-wishlist/wishlists/main/all-wishlists.json",
        validation_alias=_env("PUBLISHED_SNAPSHOT_URL"),
    )

    # Invalidation
    webhook_secret: str | None = Field(default=None, validation_alias=_env("WEBHOOK_SECRET"))
    redis_url: str = Field(
        default="redis://localhost:6379/0", validation_alias=_env("REDIS_URL")
    )
    enable_invalidation_broadcast: bool = Field(
        default=False, validation_alias=_env("ENABLE_INVALIDATION_BROADCAST")
    )

    # Public JSON feed
    public_cache_max_age: int = Field(default=600, validation_alias=_env("PUBLIC_CACHE_MAX_AGE"))


settings = Settings()
