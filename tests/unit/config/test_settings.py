"""
Tests for settings configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from newslens.config.settings import DEFAULT_MAX_VIDEO_BYTES, Settings


def test_settings_defaults():
    """Test default settings values."""
    settings = Settings()

    assert settings.app_name == "newslens"
    assert settings.debug is False
    assert settings.max_video_bytes == DEFAULT_MAX_VIDEO_BYTES
    assert settings.download_timeout == 30.0
    assert settings.activation_threshold == 200.0


def test_settings_path_validation():
    """Test path validation in settings."""
    settings = Settings(cache_dir="./test_cache")

    assert isinstance(settings.cache_dir, Path)
    assert settings.cache_dir == Path("./test_cache")
    assert settings.videos_dir == Path("./test_cache") / "videos"


def test_settings_log_level_normalized():
    """Test log level validation."""
    assert Settings(log_level="debug").log_level == "DEBUG"

    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


def test_settings_storage_url_trailing_slash():
    """Test storage base URL normalization."""
    settings = Settings(storage_base_url="https://storage.example/")
    assert settings.storage_base_url == "https://storage.example"


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_video_bytes": 0},
        {"download_timeout": 0},
        {"download_chunk_size": -1},
        {"activation_threshold": -5},
    ],
)
def test_settings_rejects_out_of_range(overrides):
    """Test numeric bounds."""
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_settings_from_environment(monkeypatch, tmp_path):
    """Test environment variable loading."""
    monkeypatch.setenv("MAX_VIDEO_BYTES", "1024")
    monkeypatch.setenv("CACHE_DIR", str(tmp_path))

    settings = Settings()

    assert settings.max_video_bytes == 1024
    assert settings.cache_dir == tmp_path


def test_create_directories(tmp_path):
    """Test cache directory creation."""
    settings = Settings(cache_dir=tmp_path / "nested" / "cache")

    settings.create_directories()

    assert settings.videos_dir.is_dir()
