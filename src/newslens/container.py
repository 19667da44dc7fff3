"""
Dependency Injection Container for newslens.

This module provides a centralized container for the process-lifetime
services of the video core. It implements a lightweight dependency
injection pattern that:

- Manages singleton services via cached properties (store, storage client,
  fetch coordinator, tracker)
- Provides a factory for feed controllers wired to those singletons
- Enables easy mock injection for testing
- Can be reset so tests start from fresh instances

Usage
-----
    >>> from newslens.container import Container
    >>> c = Container(settings=Settings(cache_dir=tmp_path))
    >>> path = await c.fetch_coordinator.ensure_local(video_id, locator)
    >>> controller = c.create_feed_controller(player_factory=make_player)
"""

from __future__ import annotations

from functools import cached_property
from typing import Optional

from newslens.config.settings import Settings, get_settings
from newslens.services.fetch_coordinator import FetchCoordinator
from newslens.services.interfaces import ObjectStorageInterface, PlayerFactory
from newslens.services.object_storage import HttpObjectStorageClient
from newslens.services.playback import ActiveItemTracker, FeedController
from newslens.services.video_store import ContentAddressableVideoStore


class Container:
    """
    Dependency injection container for newslens.

    Singletons are created lazily on first access and cached on the
    instance; :meth:`reset` clears them.

    Parameters
    ----------
    settings : Settings | None
        Application settings. Defaults to a freshly loaded ``Settings``.

    Examples
    --------
        >>> c = Container()
        >>> c.fetch_coordinator is c.fetch_coordinator
        True
    """

    _SINGLETONS = ("video_store", "object_storage", "fetch_coordinator", "tracker")

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings

    @cached_property
    def settings(self) -> Settings:
        return self._settings if self._settings is not None else get_settings()

    # -------------------------------------------------------------------------
    # Singleton Service Properties (Cached - same instance on repeated access)
    # -------------------------------------------------------------------------

    @cached_property
    def video_store(self) -> ContentAddressableVideoStore:
        """Get the singleton video store rooted at ``settings.videos_dir``."""
        return ContentAddressableVideoStore(self.settings.videos_dir)

    @cached_property
    def object_storage(self) -> ObjectStorageInterface:
        """Get the singleton object storage client."""
        return HttpObjectStorageClient(
            self.settings.storage_base_url,
            timeout=self.settings.download_timeout,
            chunk_size=self.settings.download_chunk_size,
        )

    @cached_property
    def fetch_coordinator(self) -> FetchCoordinator:
        """Get the singleton fetch coordinator wired to store and storage."""
        return FetchCoordinator(
            self.video_store,
            self.object_storage,
            max_bytes=self.settings.max_video_bytes,
            timeout=self.settings.download_timeout,
        )

    @cached_property
    def tracker(self) -> ActiveItemTracker:
        """Get the singleton active item tracker."""
        return ActiveItemTracker()

    # -------------------------------------------------------------------------
    # Factories (Transient - new instance per call)
    # -------------------------------------------------------------------------

    def create_feed_controller(self, player_factory: PlayerFactory) -> FeedController:
        """
        Create a feed controller wired to the container's singletons.

        The controller registers itself as the tracker's listener, so only
        the most recently created controller receives activation events.

        Parameters
        ----------
        player_factory : PlayerFactory
            Platform player constructor.

        Returns
        -------
        FeedController
            A new controller.
        """
        return FeedController(
            self.fetch_coordinator,
            self.tracker,
            player_factory,
            activation_threshold=self.settings.activation_threshold,
        )

    # -------------------------------------------------------------------------
    # Lifecycle / Testing Support
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Settle in-flight fetches and close the HTTP client, if created."""
        if "fetch_coordinator" in self.__dict__:
            await self.fetch_coordinator.aclose()
        storage = self.__dict__.get("object_storage")
        if isinstance(storage, HttpObjectStorageClient):
            await storage.aclose()

    def reset(self) -> None:
        """
        Reset the container by clearing all cached singleton instances.

        Tests can assign mocks to the cached attributes (e.g.
        ``c.object_storage = fake``) and call ``reset()`` afterwards.
        """
        for prop in self._SINGLETONS:
            self.__dict__.pop(prop, None)


# Global container instance
container = Container()
