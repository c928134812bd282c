"""
Centralized configuration for the Famfin backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., SUPABASE_*, FETCH_*).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Famfin API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    # Frontend URLs (for OAuth and password reset redirects)
    frontend_url: str = "http://localhost:5173"
    oauth_provider: str = "google"

    # Session bootstrap
    session_init_timeout: float = 15.0  # seconds
    session_propagation_delay: float = 0.1  # seconds

    # Profile / family lookups
    fetch_timeout: float = 8.0  # seconds, per attempt
    fetch_max_retries: int = 3
    fetch_backoff_seconds: float = 1.0

    # Provisioning
    family_provisioning_rpc: bool = True

    # Resource cache
    query_stale_seconds: float = 300.0
    invitation_ttl_days: int = 7

    @property
    def oauth_redirect_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}/auth/callback"

    @property
    def password_reset_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}/reset-password"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
