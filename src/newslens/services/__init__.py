"""
Services module for newslens.

Contains the video cache, the remote object storage client, the fetch
coordinator, and feed playback coordination.
"""

from __future__ import annotations

from newslens.services.fetch_coordinator import FetchCoordinator, FetchState
from newslens.services.object_storage import HttpObjectStorageClient
from newslens.services.video_store import ContentAddressableVideoStore

__all__: list[str] = [
    "ContentAddressableVideoStore",
    "FetchCoordinator",
    "FetchState",
    "HttpObjectStorageClient",
]
