"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Remote gateway (SUNAT proxy + backend API) configuration."""

    model_config = SettingsConfigDict(env_prefix="GATEWAY_")

    base_url: str = "http://localhost:3000"
    timeout: float = 30.0

    # Retry settings (idempotent GET requests only)
    max_retries: int = 3
    retry_delay: float = 0.5

    # Backend user owning the registered invoices
    user_id: int = 1


class DetailJobSettings(BaseSettings):
    """Detail extraction job polling configuration."""

    model_config = SettingsConfigDict(env_prefix="DETAIL_JOB_")

    poll_interval: float = 3.0
    max_poll_attempts: int = 60

    # Pause between invoices when detailing a whole collection
    batch_pause: float = 0.3


class AutoRegisterSettings(BaseSettings):
    """Auto-registration scheduler configuration."""

    model_config = SettingsConfigDict(env_prefix="AUTO_REGISTER_")

    enabled: bool = True
    grace_seconds: float = 10.0


class CredentialSettings(BaseSettings):
    """Initial SUNAT credentials (optional, may be entered at runtime)."""

    model_config = SettingsConfigDict(env_prefix="SUNAT_")

    ruc: str | None = None
    username: str | None = None
    password: str | None = None
    client_id: str | None = None
    client_secret: str | None = None


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Purchase Register"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    detail_job: DetailJobSettings = Field(default_factory=DetailJobSettings)
    auto_register: AutoRegisterSettings = Field(default_factory=AutoRegisterSettings)
    credentials: CredentialSettings = Field(default_factory=CredentialSettings)
    api: APISettings = Field(default_factory=APISettings)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
