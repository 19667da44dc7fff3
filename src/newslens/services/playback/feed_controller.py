"""
Feed controller.

Connects the feed's layout passes to the active item tracker and keeps one
playback session per visible or near-visible cell. Cells that leave the
reported window, and every cell when the app is backgrounded, have their
players released.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Sequence

from newslens.models.feed import CellGeometry, FeedPost
from newslens.services.fetch_coordinator import FetchCoordinator
from newslens.services.interfaces import PlayerFactory
from newslens.services.playback.session import PlaybackSession
from newslens.services.playback.tracker import ActiveItemTracker, TrackerListener

logger = logging.getLogger(__name__)


class FeedController(TrackerListener):
    """Owns the feed's playback sessions and routes activation to them.

    Parameters
    ----------
    coordinator : FetchCoordinator
        Shared fetch coordinator handed to every session.
    tracker : ActiveItemTracker
        Tracker whose listener this controller becomes.
    player_factory : PlayerFactory
        Player constructor handed to every session.
    activation_threshold : float
        Maximum midpoint distance from the viewport center for activation.
    """

    def __init__(
        self,
        coordinator: FetchCoordinator,
        tracker: ActiveItemTracker,
        player_factory: PlayerFactory,
        *,
        activation_threshold: float,
    ) -> None:
        self._coordinator = coordinator
        self._tracker = tracker
        self._player_factory = player_factory
        self._activation_threshold = activation_threshold

        self._posts: dict[str, FeedPost] = {}
        self._sessions: dict[str, PlaybackSession] = {}
        self._bind_tasks: dict[str, asyncio.Task[None]] = {}

        self._tracker.set_listener(self)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def active_id(self) -> Optional[str]:
        return self._tracker.active_id

    @property
    def posts(self) -> list[FeedPost]:
        return list(self._posts.values())

    def session(self, video_id: str) -> Optional[PlaybackSession]:
        """Return the live session for *video_id*, if its cell is visible."""
        return self._sessions.get(video_id)

    # ------------------------------------------------------------------
    # Feed data
    # ------------------------------------------------------------------

    def load(self, posts: Iterable[FeedPost]) -> None:
        """Install the ordered feed, releasing sessions for dropped posts."""
        self._posts = {post.video_id: post for post in posts}
        for video_id in list(self._sessions):
            if video_id not in self._posts:
                self._drop_session(video_id)
        logger.info("Feed loaded with %d posts", len(self._posts))

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def layout_pass(
        self, geometries: Sequence[CellGeometry], viewport_center_y: float
    ) -> Optional[str]:
        """Process one layout pass of the feed.

        Parameters
        ----------
        geometries : Sequence[CellGeometry]
            Every visible or near-visible cell, in feed order.
        viewport_center_y : float
            Vertical center of the viewport.

        Returns
        -------
        Optional[str]
            The active id after this pass.
        """
        known: list[CellGeometry] = []
        for geometry in geometries:
            if geometry.video_id not in self._posts:
                logger.warning("Ignoring geometry for unknown video %s", geometry.video_id)
                continue
            known.append(geometry)

        visible = {geometry.video_id for geometry in known}
        for video_id in list(self._sessions):
            if video_id not in visible:
                self._drop_session(video_id)

        # Sessions must exist before activation events are routed to them
        for geometry in known:
            self._ensure_session(geometry.video_id)

        active = self._tracker.update(
            known, viewport_center_y, self._activation_threshold
        )

        for geometry in known:
            self._ensure_bound(geometry.video_id)
        return active

    # ------------------------------------------------------------------
    # TrackerListener
    # ------------------------------------------------------------------

    def on_deactivate(self, video_id: str) -> None:
        session = self._sessions.get(video_id)
        if session is not None:
            session.deactivate()

    def on_activate(self, video_id: str) -> None:
        session = self._sessions.get(video_id)
        if session is not None:
            session.activate()

    # ------------------------------------------------------------------
    # App lifecycle
    # ------------------------------------------------------------------

    def enter_background(self) -> None:
        """Deactivate the feed and release every player."""
        self._tracker.reset()
        for video_id in list(self._sessions):
            self._drop_session(video_id)
        logger.info("Feed backgrounded; all players released")

    async def aclose(self) -> None:
        """Release every session and wait for cancelled binds to unwind."""
        tasks = list(self._bind_tasks.values())
        self.enter_background()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait until all bind operations currently running have finished."""
        while self._bind_tasks:
            await asyncio.gather(*self._bind_tasks.values(), return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_session(self, video_id: str) -> PlaybackSession:
        session = self._sessions.get(video_id)
        if session is None:
            session = PlaybackSession(
                self._coordinator, self._tracker, self._player_factory
            )
            self._sessions[video_id] = session
        return session

    def _ensure_bound(self, video_id: str) -> None:
        session = self._sessions[video_id]
        if video_id in self._bind_tasks or session.video_id == video_id:
            return
        post = self._posts[video_id]
        task = asyncio.ensure_future(session.bind(video_id, post.video_url))
        self._bind_tasks[video_id] = task
        task.add_done_callback(lambda done: self._bind_finished(video_id, done))

    def _bind_finished(self, video_id: str, task: asyncio.Task[None]) -> None:
        if self._bind_tasks.get(video_id) is task:
            del self._bind_tasks[video_id]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Binding video %s crashed", video_id, exc_info=exc)

    def _drop_session(self, video_id: str) -> None:
        session = self._sessions.pop(video_id, None)
        task = self._bind_tasks.pop(video_id, None)
        if task is not None and not task.done():
            task.cancel()
        if session is not None:
            session.release()
