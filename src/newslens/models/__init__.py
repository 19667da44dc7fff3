"""
Data models module for newslens.

Defines Pydantic models and validated types for feed posts, cell geometry,
cache statistics, and the fetch/playback lifecycle enums.
"""

from __future__ import annotations

from .enums import FetchStatus, PlaybackState
from .feed import CacheStats, CellGeometry, FeedPost
from .feed_types import RemoteLocator, VideoId

__all__ = [
    "CacheStats",
    "CellGeometry",
    "FeedPost",
    "FetchStatus",
    "PlaybackState",
    "RemoteLocator",
    "VideoId",
]
