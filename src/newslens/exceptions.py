"""
Custom exceptions for the newslens application.

This module defines the failure taxonomy for the video cache and playback
core: locator resolution, network transfer, size ceilings, local storage
writes, and unplayable media.
"""

from __future__ import annotations

from pathlib import Path


class NewslensError(Exception):
    """Base exception for all newslens errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize NewslensError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class ResolutionError(NewslensError):
    """
    Exception raised when a remote locator cannot be turned into a URL.

    Attributes
    ----------
    message : str
        Human-readable error message.
    locator : str
        The locator that failed to resolve.
    """

    def __init__(self, locator: str, message: str | None = None) -> None:
        """
        Initialize ResolutionError.

        Parameters
        ----------
        locator : str
            The locator that failed to resolve.
        message : str | None, optional
            Human-readable error message (default: derived from locator).
        """
        self.locator = locator
        super().__init__(message or f"Could not resolve locator: {locator}")


class NetworkError(NewslensError):
    """
    Exception raised when a video transfer fails.

    Wraps connection errors, non-success HTTP responses and interrupted
    streams. Retries are caller-initiated; the fetch state is not poisoned.

    Attributes
    ----------
    message : str
        Human-readable error message.
    url : str | None
        The URL being downloaded, if known.
    original_error : Exception | None
        The original exception that caused this error.

    Examples
    --------
    >>> try:
    ...     path = await coordinator.ensure_local(video_id, locator)
    ... except NetworkError as e:
    ...     print(f"Download failed for {e.url}: {e.message}")
    """

    def __init__(
        self,
        message: str = "Network error occurred",
        url: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize NetworkError.

        Parameters
        ----------
        message : str, optional
            Human-readable error message (default: "Network error occurred").
        url : str | None, optional
            The URL being downloaded (default: None).
        original_error : Exception | None, optional
            The original exception that caused this error (default: None).
        """
        self.url = url
        self.original_error = original_error
        super().__init__(message)


class DownloadTimeoutError(NetworkError):
    """Exception raised when resolving or downloading exceeds the timeout."""

    def __init__(
        self,
        timeout: float,
        url: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.timeout = timeout
        super().__init__(
            message=f"Download timed out after {timeout:g}s",
            url=url,
            original_error=original_error,
        )


class OversizeError(NewslensError):
    """
    Exception raised when a download exceeds the configured size ceiling.

    Attributes
    ----------
    limit : int
        Maximum number of bytes allowed.
    observed : int
        Declared or observed size that tripped the ceiling.
    """

    def __init__(self, limit: int, observed: int) -> None:
        """
        Initialize OversizeError.

        Parameters
        ----------
        limit : int
            Maximum number of bytes allowed.
        observed : int
            Declared or observed size in bytes.
        """
        self.limit = limit
        self.observed = observed
        super().__init__(
            f"Video exceeds size ceiling: {observed} bytes > {limit} bytes"
        )


class StorageWriteError(NewslensError):
    """
    Exception raised when committing a video to local storage fails.

    Attributes
    ----------
    path : Path
        Destination path of the failed write.
    original_error : Exception | None
        The underlying OS error, if any.
    """

    def __init__(
        self,
        path: Path,
        original_error: Exception | None = None,
        message: str | None = None,
    ) -> None:
        self.path = path
        self.original_error = original_error
        super().__init__(message or f"Failed to write cached video to {path}")


class PlayerError(NewslensError):
    """
    Exception raised when a cached video cannot be played.

    Attributes
    ----------
    video_id : str
        Identifier of the unplayable video.
    """

    def __init__(self, video_id: str, message: str | None = None) -> None:
        self.video_id = video_id
        super().__init__(message or f"Video {video_id} is not playable")


# Exit codes for CLI commands
EXIT_CODE_SUCCESS = 0
EXIT_CODE_GENERAL_ERROR = 1
EXIT_CODE_INVALID_ARGS = 2
EXIT_CODE_FETCH_FAILED = 3
EXIT_CODE_INTERRUPTED = 130  # Standard Unix signal interrupt exit code
