from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "MuaBook API"
    database_url: str = (
        "postgresql+psycopg2://muabook:muabook@db:5432/muabook"  # pragma: allowlist secret
    )
    cors_origins: list[str] = ["http://localhost:5173"]
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60

    jwt_secret: str = "change-me-in-production"  # pragma: allowlist secret
    jwt_algorithm: str = "HS256"
    jwt_expiration_seconds: int = 7 * 24 * 60 * 60
    bcrypt_rounds: int = 12

    # Wall-clock zone that slot HH:MM values are expressed in.
    provider_timezone: str = "UTC"

    s3_endpoint_url: str | None = None
    s3_region: str = "us-east-1"
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_bucket_name: str = "storage"
    s3_public_base_url: str | None = None
    presign_expiration_seconds: int = 3600
    max_upload_bytes: int = 5 * 1024 * 1024

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("provider_timezone")
    @classmethod
    def validate_provider_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
