"""
Service interfaces for newslens.

Abstract base classes for the collaborators consumed by the video core:
object storage and the platform video player.
"""

from __future__ import annotations

from .object_storage_interface import ObjectStorageInterface
from .player_interface import EndOfMediaCallback, PlayerFactory, PlayerInterface

__all__ = [
    "EndOfMediaCallback",
    "ObjectStorageInterface",
    "PlayerFactory",
    "PlayerInterface",
]
