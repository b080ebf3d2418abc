"""Configuration management for the context compaction service."""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # ===========================
    # Compaction Defaults
    # ===========================
    context_max_size: int = Field(default=8000, gt=0, alias="CONTEXT_MAX_SIZE")
    preserve_instructions: bool = Field(default=True, alias="PRESERVE_INSTRUCTIONS")
    instructions_content: str = Field(default="", alias="INSTRUCTIONS_CONTENT")
    archive_threshold: float = Field(default=0.3, ge=0.0, le=1.0, alias="ARCHIVE_THRESHOLD")
    critical_priority_cutoff: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        alias="CRITICAL_PRIORITY_CUTOFF"
    )
    preview_length: int = Field(default=50, ge=0, alias="PREVIEW_LENGTH")
    summary_limit: int = Field(default=5, ge=0, alias="SUMMARY_LIMIT")

    # ===========================
    # Server Configuration
    # ===========================
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS"
    )

    # ===========================
    # Session Configuration
    # ===========================
    max_sessions: int = Field(default=1000, gt=0, alias="MAX_SESSIONS")

    # ===========================
    # Logging Configuration
    # ===========================
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True
        extra = "ignore"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global settings
    settings = Settings()
    return settings
