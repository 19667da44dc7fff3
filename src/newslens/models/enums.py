"""
Enums for newslens models.

Defines enumeration types for fetch and playback lifecycles.
"""

from __future__ import annotations

from enum import Enum


class FetchStatus(str, Enum):
    """Per-video download state tracked by the fetch coordinator."""

    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    CACHED = "cached"
    FAILED = "failed"


class PlaybackState(str, Enum):
    """Lifecycle states of a feed cell's playback session."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    RELEASED = "released"
