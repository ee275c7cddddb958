"""
Configuration and settings for the council backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BackendKind = Literal["memory", "file", "blob", "database"]


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Flat JSON files
    data_dir: str = Field(default="data")

    # S3-compatible blob storage
    blob_bucket: Optional[str] = Field(default=None)
    blob_endpoint: Optional[str] = Field(default=None)
    blob_region: Optional[str] = Field(default=None)
    blob_prefix: str = Field(default="")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Backend selection. "auto" resolves to database, then blob, then file.
    storage_backend: Literal["auto", "memory", "file", "blob", "database"] = Field(
        default="auto"
    )
    storage_backends: Dict[str, BackendKind] = Field(default_factory=dict)
    legacy_backend: BackendKind = Field(default="blob")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Admin gate
    admin_emails: str = Field(default="")
    # Required for admin routes; unset means every admin request is refused.
    session_secret: Optional[str] = Field(default=None)
    session_ttl_seconds: int = Field(default=7 * 24 * 3600)
    session_cookie_name: str = Field(default="council_session")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def admin_email_list(self) -> list[str]:
        return [
            email.strip().lower()
            for email in self.admin_emails.split(",")
            if email.strip()
        ]

    def current_backend(self, content_type: str) -> BackendKind:
        """Resolve which backend holds the live copy of ``content_type``."""
        if self.use_in_memory_backends:
            return "memory"
        override = self.storage_backends.get(content_type)
        if override:
            return override
        if self.storage_backend != "auto":
            return self.storage_backend
        if self.database_url:
            return "database"
        if self.blob_bucket:
            return "blob"
        return "file"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
