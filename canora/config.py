"""
Configuration management for CANORA.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = Field(default="CANORA", env="APP_NAME")
    debug: bool = Field(default=False, env="DEBUG")
    environment: str = Field(default="development", env="ENVIRONMENT")

    # API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")
    api_workers: int = Field(default=1, env="API_WORKERS")

    # Database
    database_url: str = Field(default="sqlite:///./canora.db", env="DATABASE_URL")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: str = Field(default="json", env="LOG_FORMAT")

    # Lineage
    lineage_default_depth: int = Field(default=3, env="LINEAGE_DEFAULT_DEPTH")
    lineage_max_depth: int = Field(
        default=10,
        env="LINEAGE_MAX_DEPTH",
        description="Largest depth the API accepts for a lineage request.",
    )

    # Promotion
    min_justification_length: int = Field(default=10, env="MIN_JUSTIFICATION_LENGTH")
    anonymous_curator_name: str = Field(
        default="Anonymous Curator", env="ANONYMOUS_CURATOR_NAME"
    )

    # Events
    event_history_size: int = Field(default=100, env="EVENT_HISTORY_SIZE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
