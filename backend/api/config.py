"""
API configuration using Pydantic Settings.

Server and CORS settings for the local API. Supabase and session
settings live in shared.config.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FAMFIN_",
        case_sensitive=False,
        extra="ignore",
    )

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Seconds a client should wait before retrying while the session loads
    retry_after_seconds: int = 1


def get_settings() -> APISettings:
    """Get cached settings instance."""
    return APISettings()
