# backend/drivebook/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


MAX_UPLOAD_BYTES_DEFAULT = 5 * 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment name",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    is_testing: bool = Field(default=False, description="Set by the test suite")

    # Database
    database_url: str = Field(
        default="sqlite:///./drivebook.db",
        description="SQLAlchemy database URL",
    )
    auto_create_tables: bool = Field(
        default=False,
        description="Create tables on startup (local SQLite development only)",
    )

    # Identity provider tokens
    jwt_secret: SecretStr = Field(
        default=SecretStr("dev-secret-change-me-in-production-32b"),
        description="Shared secret used to verify identity provider access tokens",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_audience: Optional[str] = Field(
        default=None,
        description="Expected 'aud' claim; audience is not verified when unset",
    )
    access_token_expire_minutes: int = Field(default=60, ge=1)

    # Document storage (Cloudflare R2)
    r2_account_id: str = Field(default="", description="Cloudflare account id")
    r2_access_key_id: str = Field(default="", description="R2 access key id")
    r2_secret_access_key: SecretStr = Field(default=SecretStr(""), description="R2 secret key")
    r2_bucket_name: str = Field(default="", description="R2 bucket for documents")
    storage_public_base_url: str = Field(
        default="http://localhost:8000/files",
        description="Base URL under which stored documents are publicly retrievable",
    )
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES_DEFAULT, ge=1)

    # Booking workflow
    available_slots_page_size: int = Field(default=20, ge=1, le=200)
    timeline_lookback_days: int = Field(default=7, ge=0)
    reset_verification_on_asset_update: bool = Field(
        default=True,
        description=(
            "Send a reviewed instructor asset back to 'pending' (and hide the instructor) "
            "when the instructor edits it"
        ),
    )
    require_verified_instructor_for_booking: bool = Field(
        default=True,
        description="Only document-verified instructors can receive bookings",
    )

    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = (value or "INFO").strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return normalized

    @field_validator("storage_public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def r2_enabled(self) -> bool:
        return bool(
            self.r2_account_id
            and self.r2_access_key_id
            and self.r2_secret_access_key.get_secret_value()
            and self.r2_bucket_name
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()


def assert_env() -> None:
    """Refuse to boot production with development defaults."""
    if settings.environment != "production":
        return
    if settings.jwt_secret.get_secret_value().startswith("dev-secret"):
        raise RuntimeError("JWT_SECRET must be configured in production")
    if settings.is_sqlite:
        raise RuntimeError("DATABASE_URL must point to a server database in production")
