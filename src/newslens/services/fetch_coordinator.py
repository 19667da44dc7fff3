"""
Fetch coordinator for feed videos.

Sits between the on-disk video store and remote object storage. Every
caller asking for a video gets a local file path; concurrent callers for
the same video share one download, and a failed download can be retried
by asking again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from newslens.exceptions import DownloadTimeoutError, NetworkError, NewslensError
from newslens.models.enums import FetchStatus
from newslens.services.interfaces import ObjectStorageInterface
from newslens.services.video_store import ContentAddressableVideoStore

logger = logging.getLogger(__name__)


@dataclass
class FetchState:
    """Download state for one video identifier.

    Attributes
    ----------
    status : FetchStatus
        Current lifecycle state.
    task : asyncio.Task[Path] | None
        The shared download while ``IN_FLIGHT``.
    path : Path | None
        Committed file once ``CACHED``.
    error : NewslensError | None
        Failure of the most recent attempt once ``FAILED``.
    waiters : int
        Callers currently attached to the in-flight download.
    """

    status: FetchStatus = FetchStatus.NOT_STARTED
    task: asyncio.Task[Path] | None = None
    path: Path | None = None
    error: NewslensError | None = None
    waiters: int = 0


class FetchCoordinator:
    """Ensures each video is downloaded at most once at a time.

    All state is mutated from the event loop only; no locks are needed.

    Parameters
    ----------
    store : ContentAddressableVideoStore
        Local cache that downloaded bytes are committed to.
    storage : ObjectStorageInterface
        Remote object storage used on a cache miss.
    max_bytes : int
        Size ceiling for a single video.
    timeout : float
        Seconds allowed for resolving and downloading one video.
    """

    def __init__(
        self,
        store: ContentAddressableVideoStore,
        storage: ObjectStorageInterface,
        *,
        max_bytes: int,
        timeout: float,
    ) -> None:
        self._store = store
        self._storage = storage
        self._max_bytes = max_bytes
        self._timeout = timeout
        self._states: dict[str, FetchState] = {}
        self._background: set[asyncio.Task[None]] = set()

    @property
    def store(self) -> ContentAddressableVideoStore:
        return self._store

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def state(self, video_id: str) -> FetchStatus:
        """Return the fetch status of *video_id*."""
        entry = self._states.get(video_id)
        if entry is None:
            return FetchStatus.NOT_STARTED
        return entry.status

    def last_error(self, video_id: str) -> NewslensError | None:
        """Return the error of the last failed attempt, if any."""
        entry = self._states.get(video_id)
        return entry.error if entry is not None else None

    def waiter_count(self, video_id: str) -> int:
        """Number of callers attached to the in-flight fetch of *video_id*."""
        entry = self._states.get(video_id)
        return entry.waiters if entry is not None else 0

    @property
    def in_flight_count(self) -> int:
        return sum(
            1 for entry in self._states.values() if entry.status is FetchStatus.IN_FLIGHT
        )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def ensure_local(self, video_id: str, locator: str) -> Path:
        """Return a local path for *video_id*, downloading it on a miss.

        Parameters
        ----------
        video_id : str
            Feed video identifier (cache key).
        locator : str
            Remote locator used only when the video is not cached.

        Returns
        -------
        Path
            Path of the complete, committed video file.

        Raises
        ------
        NewslensError
            The failure of the shared download (``ResolutionError``,
            ``NetworkError``, ``OversizeError`` or ``StorageWriteError``).
            Every caller attached to that download receives the same error.
        """
        cached = self._store.resolved_path(video_id)
        if cached is not None:
            entry = self._states.get(video_id)
            if entry is None or entry.status is not FetchStatus.IN_FLIGHT:
                self._states[video_id] = FetchState(
                    status=FetchStatus.CACHED, path=cached
                )
            logger.debug("Cache hit for video %s", video_id)
            return cached

        entry = self._states.get(video_id)
        if (
            entry is not None
            and entry.status is FetchStatus.IN_FLIGHT
            and entry.task is not None
        ):
            logger.debug("Joining in-flight fetch for video %s", video_id)
            task = entry.task
        else:
            if entry is not None and entry.status is FetchStatus.FAILED:
                logger.info("Retrying fetch for video %s", video_id)
            task = self._start(video_id, locator)
            entry = self._states[video_id]

        entry.waiters += 1
        try:
            # Shielded so one caller giving up never cancels the shared download
            return await asyncio.shield(task)
        finally:
            entry.waiters -= 1

    def prefetch(self, video_id: str, locator: str) -> None:
        """Schedule a download for *video_id* without waiting for it.

        Failures are logged; the next ``ensure_local`` call may retry.
        """
        if self._store.contains(video_id) or self.state(video_id) is FetchStatus.IN_FLIGHT:
            return
        task = asyncio.ensure_future(self._prefetch(video_id, locator))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _prefetch(self, video_id: str, locator: str) -> None:
        try:
            await self.ensure_local(video_id, locator)
        except NewslensError as exc:
            logger.info("Prefetch of video %s failed: %s", video_id, exc.message)

    def _start(self, video_id: str, locator: str) -> asyncio.Task[Path]:
        task = asyncio.ensure_future(self._fetch(video_id, locator))
        self._states[video_id] = FetchState(status=FetchStatus.IN_FLIGHT, task=task)
        task.add_done_callback(lambda done: self._settle(video_id, done))
        logger.info("Fetching video %s from %s", video_id, locator)
        return task

    async def _fetch(self, video_id: str, locator: str) -> Path:
        try:
            try:
                data = await asyncio.wait_for(
                    self._download(locator), timeout=self._timeout
                )
            except asyncio.TimeoutError as exc:
                raise DownloadTimeoutError(self._timeout) from exc
            path = await asyncio.to_thread(self._store.commit, data, video_id)
        except NewslensError as exc:
            logger.warning("Fetch of video %s failed: %s", video_id, exc.message)
            self._finish(video_id, FetchState(status=FetchStatus.FAILED, error=exc))
            raise
        except Exception as exc:
            # Waiters only ever receive NewslensError
            logger.error("Fetch of video %s crashed", video_id, exc_info=True)
            error = NetworkError(
                f"Unexpected fetch failure: {exc}", original_error=exc
            )
            self._finish(video_id, FetchState(status=FetchStatus.FAILED, error=error))
            raise error from exc

        self._finish(video_id, FetchState(status=FetchStatus.CACHED, path=path))
        return path

    async def _download(self, locator: str) -> bytes:
        url = await self._storage.resolve(locator)
        return await self._storage.download(url, self._max_bytes)

    def _finish(self, video_id: str, outcome: FetchState) -> None:
        current = self._states.get(video_id)
        # A forget() during the download means the entry was dropped on purpose
        if current is not None and current.status is FetchStatus.IN_FLIGHT:
            self._states[video_id] = outcome

    def _settle(self, video_id: str, task: asyncio.Task[Path]) -> None:
        """Clean up after a download task that ended without recording an outcome."""
        error = None if task.cancelled() else task.exception()
        entry = self._states.get(video_id)
        if entry is None or entry.task is not task:
            return
        # Still IN_FLIGHT: cancelled or crashed outside the taxonomy, so allow a retry
        if error is not None:
            logger.error(
                "Fetch of video %s crashed", video_id, exc_info=error
            )
        else:
            logger.info("Fetch of video %s was cancelled", video_id)
        del self._states[video_id]

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def forget(self, video_id: str) -> bool:
        """Drop the settled fetch state for *video_id* (e.g. after eviction).

        An in-flight fetch is kept so that later callers still join it.

        Returns
        -------
        bool
            ``True`` if a state entry was removed.
        """
        entry = self._states.get(video_id)
        if entry is None:
            return False
        if entry.status is FetchStatus.IN_FLIGHT:
            logger.debug("Not forgetting in-flight fetch for video %s", video_id)
            return False
        del self._states[video_id]
        return True

    def evict(self, video_id: str) -> bool:
        """Remove the cached file for *video_id* and its settled state.

        Ignored while a download for *video_id* is in flight.

        Returns
        -------
        bool
            ``True`` if a committed file was removed.
        """
        if self.state(video_id) is FetchStatus.IN_FLIGHT:
            logger.info("Not evicting video %s: download in flight", video_id)
            return False
        removed = self._store.evict(video_id)
        self.forget(video_id)
        return removed

    def evict_all(self) -> int:
        """Clear the local store and every settled fetch state.

        In-flight downloads are left running; their results are committed
        when they finish.

        Returns
        -------
        int
            Number of committed videos removed.
        """
        removed = self._store.evict_all()
        self._states = {
            video_id: entry
            for video_id, entry in self._states.items()
            if entry.status is FetchStatus.IN_FLIGHT
        }
        return removed

    async def aclose(self) -> None:
        """Wait for in-flight and background fetches to settle."""
        pending: list[asyncio.Future[object]] = [
            entry.task
            for entry in self._states.values()
            if entry.task is not None and not entry.task.done()
        ]
        pending.extend(self._background)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
