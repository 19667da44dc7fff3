"""
Unit tests for FetchCoordinator.

Tests at-most-one-flight deduplication, cache hits, failure propagation to
every waiter, retry after failure, size ceilings, timeouts, and soft
cancellation.
"""

from __future__ import annotations

import asyncio

import pytest

from newslens.exceptions import (
    DownloadTimeoutError,
    NetworkError,
    OversizeError,
    ResolutionError,
    StorageWriteError,
)
from newslens.models.enums import FetchStatus
from newslens.services.fetch_coordinator import FetchCoordinator
from newslens.services.video_store import ContentAddressableVideoStore
from tests.fakes import VIDEO_BYTES, FakeStorage, locator_for

# CRITICAL: This line ensures async tests work with coverage
pytestmark = pytest.mark.asyncio


class TestCacheHits:
    """Tests for the cache-hit path."""

    async def test_first_call_downloads_and_commits(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        path = await coordinator.ensure_local("a", locator_for("a"))

        assert path == video_store.path_for("a")
        assert path.read_bytes() == VIDEO_BYTES
        assert len(storage.download_calls) == 1
        assert coordinator.state("a") is FetchStatus.CACHED

    async def test_second_call_performs_no_network_activity(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        first = await coordinator.ensure_local("a", locator_for("a"))
        second = await coordinator.ensure_local("a", locator_for("a"))

        assert first == second
        assert len(storage.resolve_calls) == 1
        assert len(storage.download_calls) == 1

    async def test_preexisting_file_is_a_hit(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        video_store.commit(VIDEO_BYTES, "b")

        path = await coordinator.ensure_local("b", locator_for("b"))

        assert path == video_store.path_for("b")
        assert storage.resolve_calls == []


class TestAtMostOneFlight:
    """Tests for download deduplication."""

    async def test_concurrent_callers_share_one_download(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.gate = asyncio.Event()

        callers = [
            asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
            for _ in range(10)
        ]
        await asyncio.sleep(0.01)

        assert coordinator.state("a") is FetchStatus.IN_FLIGHT
        assert coordinator.waiter_count("a") == 10
        assert coordinator.in_flight_count == 1

        storage.gate.set()
        paths = await asyncio.gather(*callers)

        assert len(set(paths)) == 1
        assert len(storage.download_calls) == 1
        assert coordinator.waiter_count("a") == 0

    async def test_different_ids_download_independently(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        paths = await asyncio.gather(
            coordinator.ensure_local("a", locator_for("a")),
            coordinator.ensure_local("b", locator_for("b")),
        )

        assert paths[0] != paths[1]
        assert len(storage.download_calls) == 2

    async def test_all_waiters_receive_the_same_error(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.gate = asyncio.Event()
        failure = NetworkError("connection reset")
        storage.fail_with = failure

        callers = [
            asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
            for _ in range(3)
        ]
        await asyncio.sleep(0.01)
        storage.gate.set()
        results = await asyncio.gather(*callers, return_exceptions=True)

        assert all(result is failure for result in results)
        assert len(storage.download_calls) == 1
        assert coordinator.state("a") is FetchStatus.FAILED
        assert coordinator.last_error("a") is failure


class TestFailures:
    """Tests for the failure taxonomy and retry."""

    async def test_resolution_error(self, coordinator: FetchCoordinator) -> None:
        with pytest.raises(ResolutionError):
            await coordinator.ensure_local("z", "gs://newslens.test/videos/missing.mp4")
        assert coordinator.state("z") is FetchStatus.FAILED

    async def test_retry_after_failure(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.fail_with = NetworkError("offline")
        with pytest.raises(NetworkError):
            await coordinator.ensure_local("a", locator_for("a"))

        storage.fail_with = None
        path = await coordinator.ensure_local("a", locator_for("a"))

        assert path.exists()
        assert len(storage.download_calls) == 2
        assert coordinator.state("a") is FetchStatus.CACHED

    async def test_oversize_leaves_no_visible_file(
        self,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        small = FetchCoordinator(video_store, storage, max_bytes=16, timeout=5.0)

        with pytest.raises(OversizeError) as exc_info:
            await small.ensure_local("a", locator_for("a"))

        assert exc_info.value.limit == 16
        assert video_store.resolved_path("a") is None
        assert list(video_store.root.iterdir()) == []

    async def test_timeout_fails_and_allows_retry(
        self,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        impatient = FetchCoordinator(video_store, storage, max_bytes=1 << 20, timeout=0.05)
        storage.gate = asyncio.Event()

        with pytest.raises(DownloadTimeoutError):
            await impatient.ensure_local("a", locator_for("a"))
        assert impatient.state("a") is FetchStatus.FAILED

        storage.gate.set()
        path = await impatient.ensure_local("a", locator_for("a"))
        assert path.exists()

    async def test_storage_write_error_propagates(
        self,
        coordinator: FetchCoordinator,
        video_store: ContentAddressableVideoStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def broken_commit(data: bytes, video_id: str) -> None:
            raise StorageWriteError(video_store.path_for(video_id))

        monkeypatch.setattr(video_store, "commit", broken_commit)

        with pytest.raises(StorageWriteError):
            await coordinator.ensure_local("a", locator_for("a"))
        assert coordinator.state("a") is FetchStatus.FAILED


class TestCancellation:
    """Tests for soft cancellation of waiters."""

    async def test_cancelled_caller_does_not_cancel_shared_fetch(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.gate = asyncio.Event()
        quitter = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        stayer = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)

        quitter.cancel()
        await asyncio.sleep(0)
        storage.gate.set()

        path = await stayer
        assert path.exists()
        assert quitter.cancelled()
        assert len(storage.download_calls) == 1

    async def test_abandoned_fetch_still_populates_cache(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        storage.gate = asyncio.Event()
        caller = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)
        caller.cancel()

        storage.gate.set()
        await coordinator.aclose()

        assert video_store.contains("a")
        assert coordinator.state("a") is FetchStatus.CACHED


class TestMaintenance:
    """Tests for prefetch and eviction helpers."""

    async def test_prefetch_populates_cache(
        self,
        coordinator: FetchCoordinator,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        coordinator.prefetch("c", locator_for("c"))
        await coordinator.aclose()

        assert video_store.contains("c")

    async def test_prefetch_failure_is_not_raised(
        self, coordinator: FetchCoordinator
    ) -> None:
        coordinator.prefetch("z", "gs://newslens.test/videos/nope.mp4")
        await coordinator.aclose()

        assert coordinator.state("z") is FetchStatus.FAILED

    async def test_evict_all_resets_state(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        await coordinator.ensure_local("a", locator_for("a"))

        assert coordinator.evict_all() == 1
        assert coordinator.state("a") is FetchStatus.NOT_STARTED
        assert video_store.resolved_path("a") is None

        await coordinator.ensure_local("a", locator_for("a"))
        assert len(storage.download_calls) == 2


class TestUnexpectedFailures:
    """Tests for failures raised outside the error taxonomy."""

    async def test_backend_crash_reaches_every_waiter_as_network_error(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.gate = asyncio.Event()
        storage.fail_with = RuntimeError("backend exploded")

        callers = [
            asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
            for _ in range(3)
        ]
        await asyncio.sleep(0.01)
        storage.gate.set()
        results = await asyncio.gather(*callers, return_exceptions=True)

        first = results[0]
        assert isinstance(first, NetworkError)
        assert isinstance(first.original_error, RuntimeError)
        assert all(result is first for result in results)
        assert coordinator.state("a") is FetchStatus.FAILED
        assert coordinator.last_error("a") is first

    async def test_last_error_cleared_by_successful_retry(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.fail_with = ValueError("bad response")
        with pytest.raises(NetworkError):
            await coordinator.ensure_local("a", locator_for("a"))
        assert coordinator.last_error("a") is not None

        storage.fail_with = None
        await coordinator.ensure_local("a", locator_for("a"))

        assert coordinator.last_error("a") is None
        assert coordinator.last_error("never-fetched") is None

    async def test_cancelled_download_is_cleared_for_retry(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.gate = asyncio.Event()
        caller = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)

        shared = coordinator._states["a"].task
        assert shared is not None
        shared.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        assert coordinator.state("a") is FetchStatus.NOT_STARTED
        assert coordinator.in_flight_count == 0

        storage.gate.set()
        path = await coordinator.ensure_local("a", locator_for("a"))
        assert path.exists()
        assert len(storage.download_calls) == 2


class TestForgetAndEvict:
    """Tests for dropping state without breaking deduplication."""

    async def test_forget_keeps_in_flight_fetch(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.gate = asyncio.Event()
        first = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)

        assert coordinator.forget("a") is False
        second = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)
        storage.gate.set()
        paths = await asyncio.gather(first, second)

        assert paths[0] == paths[1]
        assert len(storage.download_calls) == 1

    async def test_forget_settled_state(
        self, coordinator: FetchCoordinator, storage: FakeStorage
    ) -> None:
        storage.fail_with = NetworkError("offline")
        with pytest.raises(NetworkError):
            await coordinator.ensure_local("a", locator_for("a"))

        assert coordinator.forget("a") is True
        assert coordinator.forget("a") is False
        assert coordinator.state("a") is FetchStatus.NOT_STARTED
        assert coordinator.last_error("a") is None

    async def test_evict_removes_file_and_state(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        await coordinator.ensure_local("a", locator_for("a"))

        assert coordinator.evict("a") is True
        assert coordinator.evict("a") is False
        assert coordinator.state("a") is FetchStatus.NOT_STARTED
        assert not video_store.contains("a")

        await coordinator.ensure_local("a", locator_for("a"))
        assert len(storage.download_calls) == 2

    async def test_evict_ignored_while_in_flight(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        storage.gate = asyncio.Event()
        caller = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)

        assert coordinator.evict("a") is False
        storage.gate.set()
        await caller

        assert video_store.contains("a")
        assert coordinator.state("a") is FetchStatus.CACHED

    async def test_evict_all_during_in_flight_fetch(
        self,
        coordinator: FetchCoordinator,
        storage: FakeStorage,
        video_store: ContentAddressableVideoStore,
    ) -> None:
        await coordinator.ensure_local("b", locator_for("b"))
        storage.gate = asyncio.Event()
        caller = asyncio.ensure_future(coordinator.ensure_local("a", locator_for("a")))
        await asyncio.sleep(0.01)

        assert coordinator.evict_all() == 1
        assert coordinator.state("a") is FetchStatus.IN_FLIGHT

        storage.gate.set()
        path = await caller

        assert path.read_bytes() == VIDEO_BYTES
        assert coordinator.state("a") is FetchStatus.CACHED
        assert not video_store.contains("b")
