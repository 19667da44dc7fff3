"""
Active item tracking for the vertical feed.

Each layout pass the feed reports the on-screen extent of every visible or
near-visible cell. After the pass the tracker picks the one cell whose
midpoint is nearest the viewport center and notifies its listener when the
active cell changes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from newslens.models.feed import CellGeometry

logger = logging.getLogger(__name__)


class TrackerListener(ABC):
    """Receives activation changes, always deactivate-before-activate."""

    @abstractmethod
    def on_deactivate(self, video_id: str) -> None:
        """Called when *video_id* stops being the active item."""

    @abstractmethod
    def on_activate(self, video_id: str) -> None:
        """Called when *video_id* becomes the active item."""


class ActiveItemTracker:
    """Owns the single nullable ``active_id`` of the feed.

    Parameters
    ----------
    listener : TrackerListener | None
        Receiver of activate/deactivate events. May be attached later with
        :meth:`set_listener`.
    """

    def __init__(self, listener: Optional[TrackerListener] = None) -> None:
        self._listener = listener
        self._active_id: Optional[str] = None
        # dict keeps first-reported order, which breaks distance ties
        self._pending: dict[str, CellGeometry] = {}
        self._reported_ids: tuple[str, ...] = ()

    def set_listener(self, listener: Optional[TrackerListener]) -> None:
        self._listener = listener

    @property
    def active_id(self) -> Optional[str]:
        """Identifier of the active item, or ``None``."""
        return self._active_id

    @property
    def reported_ids(self) -> tuple[str, ...]:
        """Identifiers reported in the last completed layout pass, in order."""
        return self._reported_ids

    def is_active(self, video_id: str) -> bool:
        return self._active_id is not None and self._active_id == video_id

    # ------------------------------------------------------------------
    # Layout passes
    # ------------------------------------------------------------------

    def report(self, geometry: CellGeometry) -> None:
        """Accumulate one cell's geometry for the current layout pass.

        A second report for the same id within a pass replaces the
        rectangle but keeps its original position.
        """
        self._pending[geometry.video_id] = geometry

    def recompute_active(
        self, viewport_center_y: float, activation_threshold: float
    ) -> Optional[str]:
        """Close the current pass and select the active item.

        Parameters
        ----------
        viewport_center_y : float
            Vertical center of the viewport.
        activation_threshold : float
            Maximum distance between a cell midpoint and the center for the
            cell to be eligible (inclusive).

        Returns
        -------
        Optional[str]
            The new active id, or ``None`` when no cell is close enough.
        """
        if activation_threshold < 0:
            raise ValueError(
                f"activation_threshold must be >= 0, got {activation_threshold}"
            )

        batch = self._pending
        self._pending = {}
        self._reported_ids = tuple(batch)

        best_id: Optional[str] = None
        best_distance = activation_threshold
        for video_id, geometry in batch.items():
            distance = abs(geometry.mid_y - viewport_center_y)
            if distance > activation_threshold:
                continue
            if best_id is None or distance < best_distance:
                best_id = video_id
                best_distance = distance

        self._transition(best_id)
        return best_id

    def update(
        self,
        geometries: Iterable[CellGeometry],
        viewport_center_y: float,
        activation_threshold: float,
    ) -> Optional[str]:
        """Report a whole layout pass and recompute the active item."""
        for geometry in geometries:
            self.report(geometry)
        return self.recompute_active(viewport_center_y, activation_threshold)

    def reset(self) -> None:
        """Deactivate the current item and forget all geometry."""
        self._pending = {}
        self._reported_ids = ()
        self._transition(None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, new_id: Optional[str]) -> None:
        old_id = self._active_id
        if new_id == old_id:
            return

        self._active_id = new_id
        logger.debug("Active item changed: %s -> %s", old_id, new_id)
        if self._listener is None:
            return
        if old_id is not None:
            self._listener.on_deactivate(old_id)
        if new_id is not None:
            self._listener.on_activate(new_id)
