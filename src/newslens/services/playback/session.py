"""
Per-cell playback session.

A session is bound to one feed video at a time. It asks the fetch
coordinator for the local file, owns the player built on top of it, and
drives the play/pause/loop state machine in response to activation events
from the tracker.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from newslens.exceptions import NewslensError, PlayerError
from newslens.models.enums import PlaybackState
from newslens.services.fetch_coordinator import FetchCoordinator
from newslens.services.interfaces import PlayerFactory, PlayerInterface
from newslens.services.playback.tracker import ActiveItemTracker

logger = logging.getLogger(__name__)

_BOUND_STATES = frozenset(
    {
        PlaybackState.LOADING,
        PlaybackState.READY,
        PlaybackState.PLAYING,
        PlaybackState.PAUSED,
    }
)


class PlaybackSession:
    """Play/pause/loop state machine for one feed cell.

    Only the session whose video is the tracker's active item may be in
    ``PLAYING``. Failures of any kind leave the session ``IDLE`` with
    :attr:`error` set and no player held.

    Parameters
    ----------
    coordinator : FetchCoordinator
        Source of local video files.
    tracker : ActiveItemTracker
        Consulted whenever the session must know if it is active.
    player_factory : PlayerFactory
        Builds a player for a local file and an end-of-media callback.
    """

    def __init__(
        self,
        coordinator: FetchCoordinator,
        tracker: ActiveItemTracker,
        player_factory: PlayerFactory,
    ) -> None:
        self._coordinator = coordinator
        self._tracker = tracker
        self._player_factory = player_factory

        self._state = PlaybackState.IDLE
        self._video_id: Optional[str] = None
        self._locator: Optional[str] = None
        self._player: Optional[PlayerInterface] = None
        self._player_ready = False
        self._ready_task: Optional[asyncio.Future[None]] = None
        self._error: Optional[NewslensError] = None
        # Bumped on every teardown; stale suspended work compares against it
        self._generation = 0

    def __repr__(self) -> str:
        return f"PlaybackSession(video_id={self._video_id!r}, state={self._state.value})"

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def video_id(self) -> Optional[str]:
        return self._video_id

    @property
    def player(self) -> Optional[PlayerInterface]:
        return self._player

    @property
    def error(self) -> Optional[NewslensError]:
        """Last load or playback failure, for the cell's error placeholder."""
        return self._error

    @property
    def is_active(self) -> bool:
        return self._video_id is not None and self._tracker.is_active(self._video_id)

    @property
    def position(self) -> float:
        return self._player.position if self._player is not None else 0.0

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    async def bind(self, video_id: str, locator: str) -> None:
        """Bind the session to *video_id* and load its player.

        Re-binding the video the session already holds is a no-op. Any
        previous player is released first. The call returns once the
        player is ready (or the load failed, or was superseded by another
        bind or a release).
        """
        if self._video_id == video_id and self._state in _BOUND_STATES:
            logger.debug("Session already bound to %s", video_id)
            return

        self._teardown()
        generation = self._generation
        self._video_id = video_id
        self._locator = locator
        self._error = None
        self._state = PlaybackState.LOADING

        try:
            path = await self._coordinator.ensure_local(video_id, locator)
        except NewslensError as exc:
            if generation == self._generation:
                self._fail(exc)
            return

        if generation != self._generation:
            logger.debug("Discarding superseded load of %s", video_id)
            return

        try:
            player = self._player_factory(
                path, lambda: self._handle_end_of_media(generation)
            )
        except Exception as exc:
            logger.error("Could not build player for %s", video_id, exc_info=True)
            self._fail(PlayerError(video_id, f"Player failed: {exc}"))
            return
        self._player = player
        self._state = PlaybackState.READY

        ready = asyncio.ensure_future(player.wait_ready())
        self._ready_task = ready
        try:
            await asyncio.wait({ready})
        except asyncio.CancelledError:
            ready.cancel()
            raise

        if generation != self._generation or ready.cancelled():
            return
        self._ready_task = None

        exc = ready.exception()
        if exc is not None:
            if not isinstance(exc, NewslensError):
                logger.error("Player for %s failed unexpectedly", video_id, exc_info=exc)
                exc = PlayerError(video_id, f"Player failed: {exc}")
            self._fail(exc)
            return

        self._player_ready = True
        if self.is_active:
            self._start()
        else:
            logger.debug("Video %s ready while inactive; holding", video_id)

    def release(self) -> None:
        """Release the player and end this binding. Idempotent."""
        if self._state is PlaybackState.RELEASED:
            return
        self._teardown()
        self._state = PlaybackState.RELEASED
        logger.debug("Released session for %s", self._video_id)

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def activate(self) -> None:
        """Start or resume playback as the feed's active item."""
        if self._state is PlaybackState.RELEASED:
            logger.debug("Ignoring activate on released session %s", self._video_id)
            return
        if self._state in (PlaybackState.READY, PlaybackState.PAUSED) and self._player_ready:
            self._start()
        elif self._state in (PlaybackState.LOADING, PlaybackState.READY):
            # Readiness consults the tracker and starts playback then
            logger.debug("Video %s will start when ready", self._video_id)

    def deactivate(self, release: bool = False) -> None:
        """Pause playback; with *release*, drop the player entirely."""
        if release:
            self.release()
            return
        if self._state is PlaybackState.RELEASED:
            logger.debug("Ignoring deactivate on released session %s", self._video_id)
            return
        if self._player is not None and self._player_ready and self._state in (
            PlaybackState.PLAYING,
            PlaybackState.READY,
        ):
            self._player.pause()
            self._state = PlaybackState.PAUSED

    def toggle(self) -> PlaybackState:
        """Flip between playing and paused. Ignored unless active."""
        if self._state is PlaybackState.RELEASED:
            logger.debug("Ignoring toggle on released session %s", self._video_id)
            return self._state
        if not self.is_active:
            logger.debug("Ignoring toggle on inactive session %s", self._video_id)
            return self._state

        if self._state is PlaybackState.PLAYING and self._player is not None:
            self._player.pause()
            self._state = PlaybackState.PAUSED
        elif self._state in (PlaybackState.PAUSED, PlaybackState.READY) and self._player_ready:
            self._start()
        return self._state

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start(self) -> None:
        if self._player is None:
            return
        self._player.play()
        self._state = PlaybackState.PLAYING
        logger.debug("Playing %s", self._video_id)

    def _handle_end_of_media(self, generation: int) -> None:
        if generation != self._generation or self._player is None:
            return

        self._player.seek(0.0)
        if self._state is PlaybackState.PLAYING and self.is_active:
            self._player.play()
            return

        self._player.pause()
        if self._state is PlaybackState.PLAYING:
            self._state = PlaybackState.PAUSED

    def _fail(self, exc: NewslensError) -> None:
        logger.warning("Video %s unavailable: %s", self._video_id, exc.message)
        self._close_player()
        self._error = exc
        self._state = PlaybackState.IDLE

    def _teardown(self) -> None:
        self._generation += 1
        if self._ready_task is not None:
            self._ready_task.cancel()
            self._ready_task = None
        self._close_player()

    def _close_player(self) -> None:
        player = self._player
        self._player = None
        self._player_ready = False
        if player is None:
            return
        player.pause()
        player.close()
