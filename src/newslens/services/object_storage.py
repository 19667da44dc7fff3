"""
HTTP object storage client.

Resolves ``gs://`` / ``store://`` locators to Firebase Storage REST media
URLs and streams downloads with a hard size ceiling.
"""

from __future__ import annotations

import logging
from types import TracebackType
from urllib.parse import quote, urlsplit

import httpx

from newslens.exceptions import (
    DownloadTimeoutError,
    NetworkError,
    OversizeError,
    ResolutionError,
)
from newslens.services.interfaces import ObjectStorageInterface

logger = logging.getLogger(__name__)

_BUCKET_SCHEMES = {"gs", "store"}
_DIRECT_SCHEMES = {"http", "https"}


class HttpObjectStorageClient(ObjectStorageInterface):
    """Object storage client backed by ``httpx.AsyncClient``.

    Parameters
    ----------
    base_url : str
        Storage REST endpoint (e.g. ``https://firebasestorage.googleapis.com``).
    timeout : float
        Per-request HTTP timeout in seconds.
    chunk_size : int
        Streaming chunk size in bytes.
    client : httpx.AsyncClient | None
        Pre-built client. When given, the caller owns its lifecycle.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        chunk_size: int = 64 * 1024,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
        )

    async def __aenter__(self) -> "HttpObjectStorageClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, locator: str) -> str:
        """Resolve *locator* into a downloadable URL.

        ``gs://bucket/path`` and ``store://bucket/path`` map to
        ``{base_url}/v0/b/{bucket}/o/{path}?alt=media`` with the object
        path fully percent-encoded. HTTP(S) locators are returned as-is.
        """
        try:
            parts = urlsplit(locator)
        except ValueError as exc:
            raise ResolutionError(locator, f"Malformed locator {locator}: {exc}") from exc
        scheme = parts.scheme.lower()

        if scheme in _DIRECT_SCHEMES:
            if not parts.netloc:
                raise ResolutionError(locator, f"Locator has no host: {locator}")
            return locator

        if scheme not in _BUCKET_SCHEMES:
            raise ResolutionError(
                locator, f"Unsupported locator scheme '{parts.scheme}': {locator}"
            )

        bucket = parts.netloc
        object_path = parts.path.lstrip("/")
        if not bucket or not object_path:
            raise ResolutionError(
                locator, f"Locator must name a bucket and an object: {locator}"
            )

        url = (
            f"{self._base_url}/v0/b/{quote(bucket, safe='')}"
            f"/o/{quote(object_path, safe='')}?alt=media"
        )
        logger.debug("Resolved %s -> %s", locator, url)
        return url

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    async def download(self, url: str, max_bytes: int) -> bytes:
        """Stream the body at *url*, enforcing the *max_bytes* ceiling."""
        try:
            async with self._client.stream("GET", url) as response:
                if response.status_code != 200:
                    logger.warning(
                        "Unexpected status %d downloading %s",
                        response.status_code,
                        url,
                    )
                    raise NetworkError(
                        f"Unexpected status {response.status_code}", url=url
                    )

                declared = response.headers.get("content-length")
                if declared is not None and declared.isdigit():
                    if int(declared) > max_bytes:
                        logger.warning(
                            "Declared size %s exceeds ceiling for %s", declared, url
                        )
                        raise OversizeError(limit=max_bytes, observed=int(declared))

                chunks: list[bytes] = []
                received = 0
                async for chunk in response.aiter_bytes(self._chunk_size):
                    received += len(chunk)
                    if received > max_bytes:
                        logger.warning(
                            "Download of %s exceeded ceiling after %d bytes",
                            url,
                            received,
                        )
                        raise OversizeError(limit=max_bytes, observed=received)
                    chunks.append(chunk)
        except httpx.TimeoutException as exc:
            logger.warning("Timeout downloading %s", url)
            raise DownloadTimeoutError(self._timeout, url=url, original_error=exc) from exc
        except httpx.HTTPError as exc:
            logger.warning("HTTP error downloading %s: %s", url, exc)
            raise NetworkError(f"HTTP error: {exc}", url=url, original_error=exc) from exc
        except (httpx.InvalidURL, httpx.StreamError) as exc:
            # Neither derives from httpx.HTTPError
            logger.warning("Could not download %s: %s", url, exc)
            raise NetworkError(
                f"Download failed: {exc}", url=url, original_error=exc
            ) from exc

        logger.debug("Downloaded %d bytes from %s", received, url)
        return b"".join(chunks)
