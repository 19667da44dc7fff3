"""
Content-addressable on-disk store for feed videos.

Maps a video identifier to a deterministic local file, commits downloaded
bytes with atomic writes, and answers existence queries without touching
the network.
"""

from __future__ import annotations

import hashlib
import logging
import re
from datetime import datetime
from pathlib import Path
from uuid import uuid4

from newslens.exceptions import StorageWriteError
from newslens.models.feed import CacheStats

logger = logging.getLogger(__name__)

_VIDEO_SUFFIX = ".mp4"
_TEMP_MARKER = ".tmp."

# Identifiers matching this pattern are used verbatim as the file stem
_SAFE_STEM = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


class ContentAddressableVideoStore:
    """Local video cache keyed by video identifier.

    A committed file is always complete: bytes are written to a uniquely
    named temp file in the same directory and then renamed over the final
    path, so ``resolved_path`` never observes a partial download.

    Parameters
    ----------
    root : Path
        Directory holding committed videos. Created if missing.
    """

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)
        self._purge_temp_files()

    @property
    def root(self) -> Path:
        """Directory holding committed videos."""
        return self._root

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @staticmethod
    def file_name_for(video_id: str) -> str:
        """Compute the deterministic file name for *video_id*.

        Parameters
        ----------
        video_id : str
            Feed video identifier.

        Returns
        -------
        str
            ``"{video_id}.mp4"`` for filesystem-safe identifiers, otherwise
            the sha256 hex digest of the identifier with the same suffix.
        """
        if _SAFE_STEM.match(video_id) and _TEMP_MARKER not in video_id:
            stem = video_id
        else:
            stem = hashlib.sha256(video_id.encode("utf-8")).hexdigest()
        return f"{stem}{_VIDEO_SUFFIX}"

    def path_for(self, video_id: str) -> Path:
        """Return the final path for *video_id* whether or not it exists."""
        return self._root / self.file_name_for(video_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolved_path(self, video_id: str) -> Path | None:
        """Return the committed file for *video_id*, or ``None`` if absent.

        Only a filesystem existence check is performed. Empty files are
        treated as absent.
        """
        path = self.path_for(video_id)
        try:
            if path.is_file() and path.stat().st_size > 0:
                return path
        except OSError:
            logger.warning("Could not stat cached video %s", path, exc_info=True)
        return None

    def contains(self, video_id: str) -> bool:
        """Check whether a complete file exists for *video_id*."""
        return self.resolved_path(video_id) is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def commit(self, data: bytes, video_id: str) -> Path:
        """Durably write *data* as the cached video for *video_id*.

        Repeated commits for the same identifier overwrite the previous
        file atomically.

        Parameters
        ----------
        data : bytes
            Complete video bytes.
        video_id : str
            Feed video identifier.

        Returns
        -------
        Path
            Final path of the committed file.

        Raises
        ------
        StorageWriteError
            If *data* is empty or the write/rename fails.
        """
        final_path = self.path_for(video_id)
        if not data:
            raise StorageWriteError(
                final_path, message=f"Refusing to commit empty video for {video_id}"
            )

        tmp_path = final_path.with_name(
            f".{final_path.stem}{_TEMP_MARKER}{uuid4()}"
        )
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as f:
                f.write(data)
                f.flush()
            tmp_path.replace(final_path)
        except OSError as exc:
            logger.error(
                "Disk error committing video %s to %s", video_id, final_path,
                exc_info=True,
            )
            tmp_path.unlink(missing_ok=True)
            raise StorageWriteError(final_path, original_error=exc) from exc

        logger.info("Cached video %s: %s (%d bytes)", video_id, final_path, len(data))
        return final_path

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def evict(self, video_id: str) -> bool:
        """Remove the committed file for *video_id*.

        Returns
        -------
        bool
            ``True`` if a file was removed.
        """
        path = self.path_for(video_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Evicted cached video %s", video_id)
        return True

    def evict_all(self) -> int:
        """Remove every committed file, resetting the store.

        Temp files are left alone: they belong to commits that may still be
        running. Stale ones are purged when a store is constructed.

        Returns
        -------
        int
            Number of committed videos removed.
        """
        removed = 0
        for path in self._iter_videos():
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        logger.info("Cleared video cache at %s (%d videos)", self._root, removed)
        return removed

    clear = evict_all

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self) -> CacheStats:
        """Compute statistics about the committed videos."""
        count = 0
        total = 0
        oldest: float | None = None
        newest: float | None = None
        for path in self._iter_videos():
            try:
                st = path.stat()
            except OSError:
                continue
            count += 1
            total += st.st_size
            oldest = st.st_mtime if oldest is None else min(oldest, st.st_mtime)
            newest = st.st_mtime if newest is None else max(newest, st.st_mtime)

        return CacheStats(
            video_count=count,
            total_size_bytes=total,
            oldest_file=datetime.fromtimestamp(oldest) if oldest is not None else None,
            newest_file=datetime.fromtimestamp(newest) if newest is not None else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _iter_videos(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return [
            p
            for p in self._root.iterdir()
            if p.is_file() and p.suffix == _VIDEO_SUFFIX and not p.name.startswith(".")
        ]

    def _purge_temp_files(self) -> None:
        """Delete partial writes left behind by an interrupted process."""
        if not self._root.is_dir():
            return
        for path in self._root.iterdir():
            if path.name.startswith(".") and _TEMP_MARKER in path.name:
                logger.debug("Removing stale temp file %s", path)
                path.unlink(missing_ok=True)
