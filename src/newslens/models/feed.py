"""
Feed models for the short-video news feed.

Defines Pydantic models for posts supplied by the document store, the
per-cell geometry reported on each layout pass, and cache statistics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .feed_types import RemoteLocator, VideoId


class FeedPost(BaseModel):
    """A post record as delivered by the document store."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: VideoId = Field(..., description="Post identifier (doubles as video id)")
    created_at: datetime = Field(..., description="Post creation time")
    headline: Optional[str] = Field(default=None, description="Post headline")
    subtitle: Optional[str] = Field(default=None, description="Post subtitle")
    likes: int = Field(default=0, ge=0, description="Like count")
    shares: int = Field(default=0, ge=0, description="Share count")
    user_id: str = Field(..., alias="userId", min_length=1, description="Author id")
    video_url: RemoteLocator = Field(
        ..., alias="videoURL", description="Object storage locator of the video"
    )

    @field_validator("headline", "subtitle")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank text as absent."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def video_id(self) -> str:
        """Cache key and activation key for this post's video."""
        return self.id


class CellGeometry(BaseModel):
    """Vertical extent of one feed cell in viewport coordinates."""

    model_config = ConfigDict(frozen=True)

    video_id: VideoId
    min_y: float
    max_y: float

    @model_validator(mode="after")
    def check_extent(self) -> "CellGeometry":
        """Reject inverted rectangles."""
        if self.max_y < self.min_y:
            raise ValueError(
                f"max_y ({self.max_y}) must be >= min_y ({self.min_y})"
            )
        return self

    @property
    def mid_y(self) -> float:
        """Vertical midpoint of the cell."""
        return (self.min_y + self.max_y) / 2

    @classmethod
    def around(cls, video_id: str, mid_y: float, height: float) -> "CellGeometry":
        """Build a geometry centered on ``mid_y``."""
        half = height / 2
        return cls(video_id=video_id, min_y=mid_y - half, max_y=mid_y + half)


class CacheStats(BaseModel):
    """Statistics about the video cache contents.

    Attributes
    ----------
    video_count : int
        Number of committed videos.
    total_size_bytes : int
        Total disk usage of committed videos.
    oldest_file : datetime | None
        Modification time of the oldest cached file.
    newest_file : datetime | None
        Modification time of the newest cached file.
    """

    video_count: int
    total_size_bytes: int
    oldest_file: datetime | None
    newest_file: datetime | None
