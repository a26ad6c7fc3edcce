"""Centralized configuration management for the SSR content gateway."""

from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


LOG_LEVELS = ('TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class Settings(BaseSettings):
    """Gateway configuration read from the environment (and ``.env``)."""

    # Content service - NO DEFAULT, the gateway cannot run without it
    server_url: str = Field(alias="SERVER_URL")

    # Server Configuration
    server_port: int = Field(default=8080, alias="EXPRESS_SERVER_PORT")
    server_host: str = Field(default="0.0.0.0", alias="SERVER_HOST")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Static assets
    static_dir: str = Field(default="public", alias="STATIC_DIR")
    static_route: str = Field(default="/public", alias="STATIC_ROUTE")

    # Authorization towards the content service
    auth: Optional[str] = Field(default=None, alias="AUTH")
    client_id: Optional[str] = Field(default=None, alias="CLIENT_ID")
    client_secret: Optional[str] = Field(default=None, alias="CLIENT_SECRET")
    client_scope_url: Optional[str] = Field(default=None, alias="CLIENT_SCOPE_URL")
    idp_url: Optional[str] = Field(default=None, alias="IDP_URL")

    # Proxy Configuration
    proxy_tls_verify: bool = Field(default=True, alias="PROXY_TLS_VERIFY")
    proxy_timeout: Optional[float] = Field(default=None, alias="PROXY_TIMEOUT")  # None = wait forever
    content_reject_non_get: bool = Field(default=False, alias="CONTENT_REJECT_NON_GET")

    # Page rendering
    cancel_on_disconnect: bool = Field(default=True, alias="CANCEL_ON_DISCONNECT")
    disconnect_poll_interval: float = Field(default=0.25, alias="DISCONNECT_POLL_INTERVAL")
    pages_routes: Optional[str] = Field(default=None, alias="PAGES_ROUTES")  # "module:attribute"
    pages_renderer: Optional[str] = Field(default=None, alias="PAGES_RENDERER")  # "module:attribute"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",  # Allow extra fields from environment
        populate_by_name=True,  # Allow both field name and alias
    )

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"SERVER_URL must be an http:// or https:// URL, got {value!r}")
        return value

    @field_validator("server_port")
    @classmethod
    def validate_server_port(cls, value: int) -> int:
        if not (1 <= value <= 65535):
            raise ValueError(f"EXPRESS_SERVER_PORT must be between 1 and 65535, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return value

    @field_validator("disconnect_poll_interval")
    @classmethod
    def validate_poll_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("DISCONNECT_POLL_INTERVAL must be positive")
        return value

    @property
    def uses_client_credentials(self) -> bool:
        """True when every OAuth client-credentials setting is present."""
        return all([self.client_id, self.client_secret, self.client_scope_url, self.idp_url])


@lru_cache()
def get_config() -> Settings:
    """Get validated configuration instance."""
    return Settings()
