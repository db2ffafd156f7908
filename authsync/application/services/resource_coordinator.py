"""Shared-resource coordinator: one fetch, many consumers.

Several independent consumers (UI surfaces, background jobs) often need the
same server-derived value. Each consumer attaches to one coordinator; the
first attached consumer is the primary. The coordinator owns the in-flight
fetch and the authoritative state, and rebroadcasts every state change to all
attached consumers in registration order.

Rules:
    - Exactly one primary while at least one consumer is attached
    - Detaching the primary promotes the first remaining consumer at once
    - One in-flight fetch per owner key; late callers await the same task
    - A result for an owner key that is no longer current is discarded
    - The fetch task belongs to the coordinator, so promotion never loses
      or repeats it

Usage:
    coordinator = SharedResourceCoordinator(fetcher=fetch_account, logger=logger)
    header = coordinator.attach(on_state)
    sidebar = coordinator.attach(on_other_state)
    await asyncio.gather(header.load(user_id), sidebar.load(user_id))  # one fetch
    header.detach()  # sidebar becomes primary
"""

import asyncio
import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Generic, TypeVar

from authsync.core.errors import DomainError
from authsync.core.result import Result, Success
from authsync.domain.protocols.logger_protocol import LoggerProtocol

T = TypeVar("T")


@dataclass(frozen=True, slots=True, kw_only=True)
class CoordinatedState(Generic[T]):
    """Authoritative state broadcast to every consumer.

    Attributes:
        data: Last fetched value (None when absent or not loaded).
        error: Error of the last fetch, if it failed.
        is_loading: Whether a fetch is in flight.
        is_loaded: Whether a fetch completed for owner_key.
        owner_key: Identity the state belongs to (e.g. user id).
    """

    data: T | None = None
    error: DomainError | None = None
    is_loading: bool = False
    is_loaded: bool = False
    owner_key: str | None = None


Fetcher = Callable[[str, bool], Awaitable[Result[T | None, DomainError]]]
"""Loads the resource for (owner_key, fresh); fresh=True must bypass any cache."""
StateListener = Callable[[CoordinatedState[T]], None]


class CoordinatedConsumer(Generic[T]):
    """Handle held by one attached consumer.

    Attributes:
        instance_id: Stable identifier, unique per coordinator.
        local_state: Last state rebroadcast to this consumer.
    """

    def __init__(
        self,
        coordinator: "SharedResourceCoordinator[T]",
        listener: StateListener[T] | None,
        instance_id: str,
    ) -> None:
        self._coordinator = coordinator
        self._listener = listener
        self.instance_id = instance_id
        self.local_state: CoordinatedState[T] = CoordinatedState()

    @property
    def is_primary(self) -> bool:
        return self._coordinator.primary is self

    @property
    def is_attached(self) -> bool:
        return self._coordinator.is_attached(self)

    @property
    def state(self) -> CoordinatedState[T]:
        """Authoritative state (never a stale per-consumer copy)."""
        return self._coordinator.state

    async def load(self, owner_key: str) -> CoordinatedState[T]:
        """Ensure the resource is loaded for owner_key."""
        return await self._coordinator.request(self, owner_key)

    async def refresh(self) -> CoordinatedState[T]:
        """Refetch for the current owner key."""
        return await self._coordinator.refresh(self)

    def detach(self) -> None:
        self._coordinator.detach(self)

    def _receive(self, state: CoordinatedState[T]) -> None:
        self.local_state = state
        if self._listener is not None:
            self._listener(state)

    def __repr__(self) -> str:
        return (
            f"CoordinatedConsumer(instance_id={self.instance_id!r}, "
            f"primary={self.is_primary})"
        )


class SharedResourceCoordinator(Generic[T]):
    """Registry, primary election and single-flight fetch for one resource.

    Attributes:
        _fetcher: Loads the resource for an owner key; told when a refresh
            must bypass caches.
        _consumers: Attached consumers, registration order.
        _primary: Current primary consumer.
        _state: Authoritative state.
        _inflight: Owner key -> in-flight fetch task.
        fetch_count: Number of fetches started (diagnostics).
    """

    def __init__(
        self,
        *,
        fetcher: Fetcher[T],
        logger: LoggerProtocol,
        name: str = "resource",
    ) -> None:
        self._fetcher = fetcher
        self._name = name
        self._logger = logger.bind(component="resource_coordinator", resource=name)

        self._consumers: list[CoordinatedConsumer[T]] = []
        self._primary: CoordinatedConsumer[T] | None = None
        self._state: CoordinatedState[T] = CoordinatedState()
        self._inflight: dict[str, asyncio.Task[CoordinatedState[T]]] = {}
        self._ids = itertools.count(1)
        self.fetch_count = 0

    @property
    def state(self) -> CoordinatedState[T]:
        return self._state

    @property
    def primary(self) -> CoordinatedConsumer[T] | None:
        return self._primary

    @property
    def consumer_count(self) -> int:
        return len(self._consumers)

    def is_attached(self, consumer: CoordinatedConsumer[T]) -> bool:
        return consumer in self._consumers

    # =========================================================================
    # Registry
    # =========================================================================

    def attach(self, listener: StateListener[T] | None = None) -> CoordinatedConsumer[T]:
        """Register a consumer; the first one becomes primary.

        The new consumer immediately receives the current state.
        """
        consumer = CoordinatedConsumer(self, listener, f"{self._name}-{next(self._ids)}")
        self._consumers.append(consumer)
        if self._primary is None:
            self._primary = consumer
            self._logger.debug("coordinator_primary_elected", instance_id=consumer.instance_id)
        self._deliver(consumer, self._state)
        return consumer

    def detach(self, consumer: CoordinatedConsumer[T]) -> None:
        """Deregister a consumer, promoting a successor if it was primary.

        When the last consumer leaves, the state is reset; a fetch still in
        flight finishes but its result is discarded.
        """
        if consumer not in self._consumers:
            return
        self._consumers.remove(consumer)

        if self._primary is not consumer:
            return
        if self._consumers:
            self._primary = self._consumers[0]
            self._logger.info(
                "coordinator_primary_promoted",
                previous=consumer.instance_id,
                instance_id=self._primary.instance_id,
                fetch_in_flight=any(not t.done() for t in self._inflight.values()),
            )
        else:
            self._primary = None
            self._state = CoordinatedState()
            self._logger.debug("coordinator_emptied")

    # =========================================================================
    # Loading
    # =========================================================================

    async def request(
        self, consumer: CoordinatedConsumer[T], owner_key: str
    ) -> CoordinatedState[T]:
        """Load on behalf of a consumer.

        Requests from non-primary consumers are forwarded to the primary's
        fetch: they join it rather than starting their own.
        """
        if consumer not in self._consumers:
            return self._state
        if consumer is not self._primary:
            self._logger.debug(
                "coordinator_request_forwarded",
                instance_id=consumer.instance_id,
                primary=self._primary.instance_id if self._primary else None,
            )
        return await self._load(owner_key, force=False)

    async def refresh(
        self, consumer: CoordinatedConsumer[T] | None = None
    ) -> CoordinatedState[T]:
        """Refetch for the current owner key (no-op without one)."""
        if consumer is not None and consumer not in self._consumers:
            return self._state
        owner_key = self._state.owner_key
        if owner_key is None:
            return self._state
        return await self._load(owner_key, force=True)

    def reset(self) -> None:
        """Drop the state (identity cleared). In-flight results are discarded."""
        self._publish(CoordinatedState())

    async def _load(self, owner_key: str, *, force: bool) -> CoordinatedState[T]:
        if self._state.owner_key != owner_key:
            self._publish(CoordinatedState(is_loading=True, owner_key=owner_key))
        elif not force and self._state.is_loaded and not self._state.is_loading:
            return self._state

        task = self._inflight.get(owner_key)
        if task is None or task.done():
            task = asyncio.create_task(
                self._run_fetch(owner_key, fresh=force),
                name=f"authsync-coordinated {self._name}",
            )
            self._inflight[owner_key] = task
        return await asyncio.shield(task)

    async def _run_fetch(self, owner_key: str, *, fresh: bool) -> CoordinatedState[T]:
        self.fetch_count += 1
        if not self._state.is_loading:
            self._publish(replace(self._state, is_loading=True))
        self._logger.debug(
            "coordinator_fetch_started", fetch_count=self.fetch_count, fresh=fresh
        )

        try:
            result = await self._fetcher(owner_key, fresh)
        except Exception as e:
            self._logger.error("coordinator_fetch_failed", error=e)
            if self._state.owner_key == owner_key:
                self._publish(replace(self._state, is_loading=False))
            raise
        finally:
            if self._inflight.get(owner_key) is asyncio.current_task():
                del self._inflight[owner_key]

        if self._state.owner_key != owner_key:
            self._logger.debug("coordinator_stale_result_discarded")
            return self._state

        if isinstance(result, Success):
            state = CoordinatedState(data=result.value, is_loaded=True, owner_key=owner_key)
        else:
            state = CoordinatedState(
                data=self._state.data,
                error=result.error,
                is_loaded=True,
                owner_key=owner_key,
            )
        self._publish(state)
        return state

    # =========================================================================
    # Broadcast
    # =========================================================================

    def _publish(self, state: CoordinatedState[T]) -> None:
        self._state = state
        for consumer in list(self._consumers):
            self._deliver(consumer, state)

    def _deliver(self, consumer: CoordinatedConsumer[T], state: CoordinatedState[T]) -> None:
        try:
            consumer._receive(state)
        except Exception as e:
            self._logger.warning(
                "coordinator_listener_failed",
                instance_id=consumer.instance_id,
                error_type=type(e).__name__,
                error_message=str(e),
            )
