"""
Centralized configuration for the Tenure backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., PAYMENT_*, ADMIN_*).
"""

from functools import lru_cache
from typing import Literal, Optional
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
    app_name: str = "Tenure API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Storage: "memory" keeps state in-process, "supabase" persists it
    storage_backend: Literal["memory", "supabase"] = "memory"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_db_url: str = ""

    # Entitlements
    reconcile_max_retries: int = 5

    # Codes
    code_prefix: str = "TENURE"

    # Trial / grace
    trial_days: int = 30
    grace_days: int = 3

    # Payments
    payment_session_ttl_seconds: int = 30 * 60
    payment_sweep_interval_seconds: int = 60
    payment_webhook_secret: str = ""
    # Fallback confirmation poller; disabled while no gateway URL is set
    payment_gateway_url: Optional[str] = None
    payment_gateway_api_key: Optional[str] = None
    payment_poll_interval_seconds: int = 30

    # Admin
    admin_session_ttl_seconds: int = 30 * 60
    # User ids seeded as super admins when storage_backend is "memory"
    admin_bootstrap_ids: list[str] = []


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
