"""
Abstract Base Class for object storage clients.

This interface defines the contract the fetch coordinator relies on,
enabling:
- Multiple storage backends (Firebase Storage REST, plain HTTP, fakes)
- Testability via in-memory implementations
- Clear API boundaries for type checking
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ObjectStorageInterface(ABC):
    """
    Abstract interface for resolving and downloading stored videos.

    Examples
    --------
    >>> class InMemoryStorage(ObjectStorageInterface):
    ...     async def resolve(self, locator: str) -> str:
    ...         return locator
    ...     async def download(self, url: str, max_bytes: int) -> bytes:
    ...         return b"..."
    """

    @abstractmethod
    async def resolve(self, locator: str) -> str:
        """
        Resolve a remote locator into a downloadable URL.

        Parameters
        ----------
        locator : str
            Scheme-qualified locator (e.g. ``gs://bucket/videos/a.mp4``).

        Returns
        -------
        str
            URL that can be passed to :meth:`download`.

        Raises
        ------
        ResolutionError
            When the locator cannot be resolved.
        """

    @abstractmethod
    async def download(self, url: str, max_bytes: int) -> bytes:
        """
        Download the full body at *url*.

        Parameters
        ----------
        url : str
            Resolved download URL.
        max_bytes : int
            Size ceiling; larger bodies must be rejected.

        Returns
        -------
        bytes
            The complete body.

        Raises
        ------
        OversizeError
            When the declared or observed size exceeds *max_bytes*.
        NetworkError
            When the transfer fails.
        """
