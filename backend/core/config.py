"""Application settings loaded from the environment."""

from __future__ import annotations

from datetime import timedelta

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: str = "local"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./accounts.db"

    # ── Tokens ───────────────────────────────────────────────────────────
    access_token_secret: str = "change-me-access-secret"
    access_token_expire_minutes: int = Field(default=15, gt=0)
    refresh_token_secret: str = "change-me-refresh-secret"
    refresh_token_expire_minutes: int = Field(default=60 * 24 * 10, gt=0)

    # ── Password hashing ─────────────────────────────────────────────────
    password_hash_rounds: int = Field(default=12, ge=4, le=31)

    # ── Media storage ────────────────────────────────────────────────────
    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_secure: bool = False
    minio_bucket: str = "media"
    media_public_base_url: str = "http://localhost:9000"

    @model_validator(mode="after")
    def _check_token_secrets(self) -> "Settings":
        if not self.access_token_secret or not self.refresh_token_secret:
            raise ValueError("Token secrets must not be empty")
        # Access and refresh tokens must not be interchangeable.
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("Access and refresh token secrets must differ")
        return self

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.refresh_token_expire_minutes)


settings = Settings()
