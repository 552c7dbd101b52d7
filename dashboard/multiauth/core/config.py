"""
Application configuration module.

Provides centralized, environment-safe configuration management
for the dashboard session shell.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables.
    Environment variables should be prefixed with MULTIAUTH_.

    Attributes:
        app_name: Application name.
        app_version: Application version.
        debug: Debug mode flag.
        log_level: Logging level.
        log_format: ``json`` for production, ``console`` for development.
        api_base_url: Base URL of the backend exposing the login endpoint.
        login_endpoint: Path of the backend login endpoint.
        request_timeout: Timeout in seconds for backend calls.
        storage_backend: ``file`` for durable sessions, ``memory`` for ephemeral ones.
        storage_dir: Directory holding one file per session key.
        login_path: Dashboard path unauthenticated navigations are sent to.
        default_retry_after: Seconds reported when a 429 carries no Retry-After.
    """

    # Application metadata
    app_name: str = Field(default="Stockship Dashboard Session Shell")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")

    # Backend collaborator
    api_base_url: str = Field(default="http://localhost:5000/api")
    login_endpoint: str = Field(default="/auth/login")
    request_timeout: float = Field(default=10.0, gt=0)

    # Session persistence
    storage_backend: Literal["file", "memory"] = Field(default="file")
    storage_dir: str = Field(default=".sessions")

    # Navigation
    login_path: str = Field(default="/multi-login")
    default_retry_after: int = Field(default=15, ge=0)

    model_config = {
        "env_prefix": "MULTIAUTH_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def storage_path(self) -> Path:
        """Absolute path of the session storage directory."""
        return Path(self.storage_dir).expanduser().resolve()


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.info(f"Settings loaded: app_name={_settings.app_name}, debug={_settings.debug}")
    return _settings
