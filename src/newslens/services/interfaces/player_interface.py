"""
Abstract Base Class for platform video players.

A player is an exclusively owned, decoder-backed resource constructed for
one local file. Playback sessions create it through a ``PlayerFactory`` and
must ``close()`` it when they are done.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

EndOfMediaCallback = Callable[[], None]


class PlayerInterface(ABC):
    """Playable handle over a local video file."""

    @abstractmethod
    async def wait_ready(self) -> None:
        """
        Wait until the media is ready to play.

        Raises
        ------
        PlayerError
            When the asset is unplayable or corrupt.
        """

    @abstractmethod
    def play(self) -> None:
        """Start or resume playback."""

    @abstractmethod
    def pause(self) -> None:
        """Pause playback."""

    @abstractmethod
    def seek(self, position: float) -> None:
        """Seek to *position* seconds."""

    @abstractmethod
    def close(self) -> None:
        """Release decoder resources. The player is unusable afterwards."""

    @property
    @abstractmethod
    def position(self) -> float:
        """Current playback position in seconds."""


# The end-of-media callback must be invoked by the player on the event loop.
PlayerFactory = Callable[[Path, EndOfMediaCallback], PlayerInterface]
