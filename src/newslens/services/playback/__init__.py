"""
Feed playback coordination.

Active item tracking, per-cell playback sessions, and the controller that
wires layout passes to both.
"""

from __future__ import annotations

from .feed_controller import FeedController
from .session import PlaybackSession
from .tracker import ActiveItemTracker, TrackerListener

__all__ = [
    "ActiveItemTracker",
    "FeedController",
    "PlaybackSession",
    "TrackerListener",
]
