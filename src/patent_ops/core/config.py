"""
Configuration management for the OPS client.
Loads environment variables and provides centralized access to client settings.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OPSConfig(BaseSettings):
    """
    Centralized configuration for the OPS client.
    Loads from environment variables and .env file.
    """

    # === Credentials ===
    epo_consumer_key: str = Field(default="", alias="EPO_CONSUMER_KEY")
    epo_consumer_secret: str = Field(default="", alias="EPO_CONSUMER_SECRET")

    # === Endpoints ===
    epo_ops_base_url: str = Field(
        default="https://ops.epo.org/3.2/rest-services",
        alias="EPO_OPS_BASE_URL",
    )
    epo_ops_auth_url: str = Field(
        default="https://ops.epo.org/3.2/auth/accesstoken",
        alias="EPO_OPS_AUTH_URL",
    )
    epo_request_timeout_seconds: float = Field(
        default=30.0,
        alias="EPO_REQUEST_TIMEOUT_SECONDS",
    )
    # Bounds a whole call including retries; None disables it.
    epo_call_timeout_seconds: Optional[float] = Field(
        default=None,
        alias="EPO_CALL_TIMEOUT_SECONDS",
    )

    # === Application Configuration ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # === Rate Limiting ===
    max_requests_per_minute: int = Field(default=30, alias="MAX_REQUESTS_PER_MINUTE")
    max_retry_attempts: int = Field(default=3, alias="MAX_RETRY_ATTEMPTS")
    retry_initial_delay_ms: int = Field(default=1000, alias="RETRY_INITIAL_DELAY_MS")
    retry_max_delay_ms: int = Field(default=10000, alias="RETRY_MAX_DELAY_MS")
    retry_backoff_factor: float = Field(default=2.0, alias="RETRY_BACKOFF_FACTOR")
    retry_network_errors: bool = Field(default=False, alias="RETRY_NETWORK_ERRORS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_epo_configured(self) -> bool:
        """Check if EPO OPS consumer credentials are configured."""
        return bool(self.epo_consumer_key and self.epo_consumer_secret)


# Singleton instance
_config: OPSConfig | None = None


def get_config() -> OPSConfig:
    """
    Get the client configuration singleton.
    Initializes on first call.
    """
    global _config
    if _config is None:
        _config = OPSConfig()
    return _config


def reload_config() -> OPSConfig:
    """Force reload of configuration from environment."""
    global _config
    _config = OPSConfig()
    return _config
