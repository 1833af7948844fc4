"""Application configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 1000


class Settings(BaseSettings):
    """Relay settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=Path.cwd() / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5000, description="Server port")

    # Viewer origin (comma separated, "*" allows any origin)
    client_url: str = Field(
        default="http://localhost:3000", description="Allowed dashboard origin(s)"
    )

    # Durable store (empty = memory-only mode)
    database_url: str = Field(default="", description="PostgreSQL database URL")

    # Relay behaviour
    history_capacity: int = Field(
        default=DEFAULT_HISTORY_CAPACITY, ge=1, description="Max snapshots kept in memory"
    )
    viewer_queue_size: int = Field(
        default=64, ge=1, description="Pending pushes buffered per viewer"
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Keep-Alive
    enable_keep_alive: bool = Field(default=True, description="Enable heartbeat task")
    keep_alive_interval: int = Field(default=300, description="Heartbeat interval in seconds")

    # Built dashboard bundle, served at / in production
    dashboard_dir: str = Field(default="", description="Path to built dashboard files")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @property
    def cors_origins(self) -> list[str]:
        """Get allowed origins for HTTP and viewer connections"""
        return [o.strip() for o in self.client_url.split(",") if o.strip()]

    @property
    def persistence_enabled(self) -> bool:
        """Whether a durable store is configured"""
        return bool(self.database_url.strip())

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
