"""Application configuration from environment variables and .env file."""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Pydantic automatically loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file in the working directory

    Instantiate through get_settings() so tests can set the environment first.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./ipe.db", description="SQLAlchemy database URL"
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Auth
    jwt_secret: str = Field(
        default="ipe-dev-secret-change-me", min_length=16, description="HS256 signing key"
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_days: int = Field(default=7, ge=1, description="Access token lifetime")
    initial_password: str = Field(
        default="senha123",
        min_length=6,
        description="Password given to login identities created with a new party",
    )

    # Locale
    locale: str = Field(default="pt_BR", description="Babel locale for amounts (currency from its territory)")

    # File storage
    upload_dir: str = Field(default="uploads", description="Directory for uploaded blobs")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Server log file")

    # API
    api_title: str = Field(default="Ipê API")
    api_version: str = Field(default="0.1.0")


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance.

    Lazy-loaded so that environment variables set by the caller (tests, CLI)
    are visible at instantiation time.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        logger.debug("Settings loaded: database_url=%s", _settings_instance.database_url)
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings_instance
    _settings_instance = None


__all__ = ["Settings", "get_settings", "reset_settings"]
