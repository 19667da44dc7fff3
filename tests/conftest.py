"""
Pytest configuration and fixtures for newslens tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from newslens.config.settings import Settings
from newslens.services.fetch_coordinator import FetchCoordinator
from newslens.services.playback.tracker import ActiveItemTracker
from newslens.services.video_store import ContentAddressableVideoStore
from tests.fakes import VIDEO_BYTES, FakePlayerFactory, FakeStorage, locator_for


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary cache directory."""
    return Settings(
        cache_dir=tmp_path / "cache",
        max_video_bytes=1024 * 1024,
        download_timeout=5.0,
        activation_threshold=200.0,
        log_level="DEBUG",
    )


@pytest.fixture
def video_store(tmp_path: Path) -> ContentAddressableVideoStore:
    return ContentAddressableVideoStore(tmp_path / "videos")


@pytest.fixture
def storage() -> FakeStorage:
    """Fake object storage pre-loaded with videos a..e."""
    return FakeStorage({locator_for(v): VIDEO_BYTES for v in "abcde"})


@pytest.fixture
def coordinator(
    video_store: ContentAddressableVideoStore, storage: FakeStorage
) -> FetchCoordinator:
    return FetchCoordinator(video_store, storage, max_bytes=1024 * 1024, timeout=5.0)


@pytest.fixture
def tracker() -> ActiveItemTracker:
    return ActiveItemTracker()


@pytest.fixture
def player_factory() -> FakePlayerFactory:
    return FakePlayerFactory()
