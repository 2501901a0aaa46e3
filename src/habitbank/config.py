"""Application settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with HABITBANK_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="HABITBANK_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    redis_url: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Accounts ---
    admin_email: str = ""

    # --- JWT ---
    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 30
    jwt_issuer: str = "habitbank"

    # --- Google OAuth ---
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:8000/api/auth/callback"

    # --- Maintenance ---
    reset_api_key: str = ""

    @property
    def allows_memory_store(self) -> bool:
        """The in-memory store is only acceptable outside production."""
        return self.environment in ("development", "test")


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
