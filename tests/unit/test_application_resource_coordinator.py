"""Unit tests for SharedResourceCoordinator.

Tests cover:
- Primary election and promotion on detach
- Single fetch for concurrent loads from many consumers
- An in-flight fetch is neither lost nor repeated when the primary detaches
- Stale results (owner changed or reset) are discarded
- Failure results and raising fetchers
- Listener failures are isolated
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from authsync.application.services.resource_coordinator import (
    CoordinatedState,
    SharedResourceCoordinator,
)
from authsync.core.enums import ErrorCode
from authsync.core.errors import DomainError
from authsync.core.result import Failure, Success


class GatedFetcher:
    """Fetcher that blocks until release() and records owner keys."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fresh: list[bool] = []
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self, owner_key: str, fresh: bool):
        self.calls.append(owner_key)
        self.fresh.append(fresh)
        await self._gate.wait()
        return Success(value={"owner": owner_key, "points": 120})


def coordinator_for(fetcher) -> SharedResourceCoordinator[dict]:
    return SharedResourceCoordinator(fetcher=fetcher, logger=MagicMock(), name="loyalty")


@pytest.mark.unit
class TestPrimaryElection:
    """Registry behaviour."""

    def test_first_consumer_is_primary(self):
        coordinator = coordinator_for(GatedFetcher())

        first = coordinator.attach()
        second = coordinator.attach()

        assert first.is_primary is True
        assert second.is_primary is False
        assert coordinator.consumer_count == 2
        assert first.instance_id != second.instance_id

    def test_detaching_primary_promotes_first_remaining(self):
        coordinator = coordinator_for(GatedFetcher())
        first = coordinator.attach()
        second = coordinator.attach()
        third = coordinator.attach()

        first.detach()

        assert coordinator.primary is second
        assert [second.is_primary, third.is_primary] == [True, False]
        assert first.is_attached is False

    def test_detaching_secondary_keeps_primary(self):
        coordinator = coordinator_for(GatedFetcher())
        first = coordinator.attach()
        second = coordinator.attach()

        second.detach()
        second.detach()

        assert coordinator.primary is first
        assert coordinator.consumer_count == 1

    def test_last_detach_resets_state(self):
        coordinator = coordinator_for(GatedFetcher())
        only = coordinator.attach()

        only.detach()

        assert coordinator.primary is None
        assert coordinator.state == CoordinatedState()

    def test_attach_delivers_current_state(self):
        coordinator = coordinator_for(GatedFetcher())
        seen: list[CoordinatedState] = []

        coordinator.attach(seen.append)

        assert seen == [CoordinatedState()]


@pytest.mark.unit
class TestSingleFlight:
    """One fetch per owner key."""

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_fetch(self):
        fetcher = GatedFetcher()
        coordinator = coordinator_for(fetcher)
        consumers = [coordinator.attach() for _ in range(3)]

        loads = [asyncio.create_task(c.load("user-1")) for c in consumers]
        await asyncio.sleep(0)
        fetcher.release()
        states = await asyncio.gather(*loads)

        assert fetcher.calls == ["user-1"]
        assert coordinator.fetch_count == 1
        assert all(s.data == {"owner": "user-1", "points": 120} for s in states)
        assert all(c.local_state == coordinator.state for c in consumers)

    @pytest.mark.asyncio
    async def test_loaded_state_is_reused(self):
        fetcher = GatedFetcher()
        fetcher.release()
        coordinator = coordinator_for(fetcher)
        consumer = coordinator.attach()

        await consumer.load("user-1")
        await consumer.load("user-1")

        assert coordinator.fetch_count == 1

    @pytest.mark.asyncio
    async def test_refresh_fetches_again(self):
        fetcher = GatedFetcher()
        fetcher.release()
        coordinator = coordinator_for(fetcher)
        consumer = coordinator.attach()
        await consumer.load("user-1")

        state = await consumer.refresh()

        assert coordinator.fetch_count == 2
        assert fetcher.fresh == [False, True]
        assert state.is_loaded is True

    @pytest.mark.asyncio
    async def test_refresh_without_owner_is_noop(self):
        coordinator = coordinator_for(GatedFetcher())
        consumer = coordinator.attach()

        state = await consumer.refresh()

        assert state == CoordinatedState()
        assert coordinator.fetch_count == 0

    @pytest.mark.asyncio
    async def test_loading_flag_broadcast(self):
        fetcher = GatedFetcher()
        coordinator = coordinator_for(fetcher)
        seen: list[CoordinatedState] = []
        consumer = coordinator.attach(seen.append)

        pending = asyncio.create_task(consumer.load("user-1"))
        await asyncio.sleep(0)
        assert coordinator.state.is_loading is True
        fetcher.release()
        await pending

        assert seen[-1].is_loading is False
        assert seen[-1].is_loaded is True


@pytest.mark.unit
class TestPromotionDuringFetch:
    """The fetch belongs to the coordinator, not the primary."""

    @pytest.mark.asyncio
    async def test_in_flight_fetch_survives_primary_detach(self):
        fetcher = GatedFetcher()
        coordinator = coordinator_for(fetcher)
        primary = coordinator.attach()
        successor_states: list[CoordinatedState] = []
        successor = coordinator.attach(successor_states.append)

        primary_load = asyncio.create_task(primary.load("user-1"))
        await asyncio.sleep(0)
        primary.detach()
        successor_load = asyncio.create_task(successor.load("user-1"))
        await asyncio.sleep(0)
        fetcher.release()
        await asyncio.gather(primary_load, successor_load)

        assert successor.is_primary is True
        assert coordinator.fetch_count == 1
        assert successor_states[-1].data == {"owner": "user-1", "points": 120}
        assert successor.state.is_loaded is True


@pytest.mark.unit
class TestStaleResults:
    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_result(self):
        fetcher = GatedFetcher()
        coordinator = coordinator_for(fetcher)
        consumer = coordinator.attach()

        pending = asyncio.create_task(consumer.load("user-1"))
        await asyncio.sleep(0)
        coordinator.reset()
        fetcher.release()
        await pending

        assert coordinator.state == CoordinatedState()
        assert consumer.local_state.data is None

    @pytest.mark.asyncio
    async def test_owner_change_discards_previous_owner_result(self):
        fetcher = GatedFetcher()
        coordinator = coordinator_for(fetcher)
        consumer = coordinator.attach()

        first = asyncio.create_task(consumer.load("user-1"))
        await asyncio.sleep(0)
        second = asyncio.create_task(consumer.load("user-2"))
        await asyncio.sleep(0)
        fetcher.release()
        await asyncio.gather(first, second)

        assert fetcher.calls == ["user-1", "user-2"]
        assert coordinator.state.owner_key == "user-2"
        assert coordinator.state.data == {"owner": "user-2", "points": 120}


@pytest.mark.unit
class TestFailures:
    @pytest.mark.asyncio
    async def test_failure_result_recorded(self):
        error = DomainError(code=ErrorCode.SERVER_ERROR, message="unavailable")

        async def failing(owner_key: str, fresh: bool):
            return Failure(error=error)

        coordinator = coordinator_for(failing)
        consumer = coordinator.attach()

        state = await consumer.load("user-1")

        assert state.error == error
        assert state.is_loaded is True
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_raising_fetcher_propagates_and_clears_loading(self):
        async def crashing(owner_key: str, fresh: bool):
            raise RuntimeError("boom")

        coordinator = coordinator_for(crashing)
        consumer = coordinator.attach()

        with pytest.raises(RuntimeError):
            await consumer.load("user-1")

        assert coordinator.state.is_loading is False

    @pytest.mark.asyncio
    async def test_listener_failure_does_not_block_others(self):
        fetcher = GatedFetcher()
        fetcher.release()
        logger = MagicMock()
        logger.bind.return_value = logger
        coordinator = SharedResourceCoordinator(fetcher=fetcher, logger=logger)
        seen: list[CoordinatedState] = []

        def broken(state: CoordinatedState) -> None:
            if state.is_loaded:
                raise RuntimeError("render failed")

        coordinator.attach(broken)
        coordinator.attach(seen.append)

        await coordinator.primary.load("user-1")

        assert seen[-1].is_loaded is True
        assert logger.warning.call_args[0][0] == "coordinator_listener_failed"

    @pytest.mark.asyncio
    async def test_detached_consumer_cannot_load(self):
        coordinator = coordinator_for(GatedFetcher())
        consumer = coordinator.attach()
        consumer.detach()

        state = await consumer.load("user-1")

        assert state == CoordinatedState()
        assert coordinator.fetch_count == 0
