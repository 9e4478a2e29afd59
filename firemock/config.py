"""Configuration loading for the firemock document store.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database identity used in resource names
    project_id: str = Field(
        default="firemock",
        description="Project id reported in document resource names",
    )
    database_id: str = Field(
        default="(default)",
        description="Database id reported in document resource names",
    )

    # Initial data
    fixture_path: str = Field(
        default="",
        description="JSON fixture file loaded at startup (empty for none)",
    )

    # Run mode
    run_mode: Literal["server", "cli"] = Field(
        default="server",
        description="Run mode: HTTP server or interactive CLI",
    )

    # HTTP server configuration
    server_host: str = Field(
        default="127.0.0.1",
        description="HTTP server host to listen on",
    )
    server_port: int = Field(
        default=8080,
        description="HTTP server port",
    )
    server_api_key: str = Field(
        default="",
        description="API key for HTTP authentication (Bearer or X-API-Key)",
    )
    server_require_auth: bool = Field(
        default=False,
        description="Require API key authentication on every endpoint except /health",
    )
    max_body_bytes: int = Field(
        default=1024 * 1024,
        description="Largest accepted HTTP request body in bytes",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("server_port")
    @classmethod
    def validate_server_port(cls, v: int) -> int:
        """Ensure server port is in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("server_port must be between 1 and 65535")
        return v

    @field_validator("max_body_bytes")
    @classmethod
    def validate_max_body_bytes(cls, v: int) -> int:
        """Ensure body limit is positive."""
        if v <= 0:
            raise ValueError("max_body_bytes must be positive")
        return v

    @field_validator("project_id", "database_id")
    @classmethod
    def validate_resource_id(cls, v: str) -> str:
        """Ensure ids can be embedded in a resource name."""
        if not v or "/" in v:
            raise ValueError("project and database ids must be non-empty and contain no '/'")
        return v

    @model_validator(mode="after")
    def validate_auth(self) -> "Settings":
        """Ensure an API key is configured when authentication is required."""
        if self.server_require_auth and not self.server_api_key:
            raise ValueError("server_api_key must be set when server_require_auth is true")
        return self


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
