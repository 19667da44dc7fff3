"""
Application settings and configuration management.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from newslens import __version__

# 50 MB ceiling for a single feed video
DEFAULT_MAX_VIDEO_BYTES = 50 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="newslens")
    app_version: str = Field(default=__version__)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Storage
    cache_dir: Path = Field(default=Path("./cache"))

    # Object storage
    storage_base_url: str = Field(default="https://firebasestorage.googleapis.com")

    # Downloads
    max_video_bytes: int = Field(default=DEFAULT_MAX_VIDEO_BYTES, gt=0)
    download_timeout: float = Field(default=30.0, gt=0)
    download_chunk_size: int = Field(default=64 * 1024, gt=0)

    # Feed playback
    activation_threshold: float = Field(default=200.0, ge=0)

    @field_validator("cache_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Ensure directory paths are Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("storage_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the storage base URL."""
        return v.rstrip("/")

    @property
    def videos_dir(self) -> Path:
        """Directory holding committed video files."""
        return self.cache_dir / "videos"

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.videos_dir.mkdir(parents=True, exist_ok=True)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance
settings = get_settings()
