"""Connection Manager: owner of the single realtime connection.

Responsibilities:
    - Memoized connect(): concurrent callers share one in-flight attempt
    - Reconnection with exponential backoff (base * 2^attempt, capped count)
    - Circuit breaker over consecutive failures (cool-down, one probe)
    - Heartbeat liveness probe that tears down silent connections
    - Typed handler table per RealtimeEventType, removable on destroy()
    - Re-emission of forced-logout and rate-limit events on the event bus
    - A "ready" event that queued operations await instead of polling

Lifecycle:
    manager = ConnectionManager(transport_factory=..., event_bus=..., ...)
    manager.initialize()          # idempotent
    await manager.connect(token)  # Result[None, RealtimeConnectionError]
    ...
    await manager.destroy()       # disconnect + remove every handler
"""

import asyncio
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from authsync.core.config import Settings
from authsync.core.constants import BEARER_PREFIX
from authsync.core.enums import ErrorCode
from authsync.core.result import Failure, Result, Success
from authsync.domain.enums import CircuitState, ConnectionState
from authsync.domain.errors import RealtimeConnectionError
from authsync.domain.events.connection_events import (
    ConnectionStateChanged,
    ForcedLogoutReceived,
    RateLimitExceeded,
)
from authsync.domain.events.realtime_messages import (
    ForceLogoutPayload,
    LifecyclePayload,
    MessageDirection,
    OutboundPayload,
    PingPayload,
    RateLimitExceededPayload,
    RealtimeEventType,
    get_direction,
    parse_inbound,
)
from authsync.domain.protocols.duplex_transport_protocol import (
    DuplexTransportProtocol,
    TransportClosedError,
    TransportFactory,
    TransportOpenError,
)
from authsync.domain.protocols.event_bus_protocol import EventBusProtocol
from authsync.domain.protocols.logger_protocol import LoggerProtocol
from authsync.infrastructure.realtime.circuit_breaker import CircuitBreaker
from authsync.infrastructure.realtime.heartbeat import HeartbeatMonitor

RealtimeHandler = Callable[[Any], Awaitable[None]]
"""Async handler receiving the typed payload of one RealtimeEventType."""


class ConnectionManager:
    """Single duplex connection with reconnection policy.

    Attributes:
        _transport_factory: Builds a fresh transport per attempt.
        _event_bus: Process-wide signal bus.
        _breaker: Circuit breaker over consecutive connection failures.
        _state: Current ConnectionState.
        _transport: Live transport while connected.
        _connect_task: In-flight attempt shared by concurrent connect() calls.
        _reconnect_task: Pending delayed reconnect (backoff or cool-down).
        _ready: Set while connected; awaited by queued operations.
        _handlers: Typed handler table.
        _generation: Incremented on every successful connect.
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory,
        event_bus: EventBusProtocol,
        logger: LoggerProtocol,
        settings: Settings,
        cookie_provider: Callable[[], str | None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the manager (no I/O, no tasks).

        Args:
            transport_factory: Callable returning an unopened transport.
            event_bus: Bus for forced-logout, rate-limit and state signals.
            logger: Structured logger.
            settings: Timing and threshold configuration.
            cookie_provider: Returns the Cookie header forwarded on handshake.
            clock: Monotonic clock shared with the circuit breaker.
        """
        self._transport_factory = transport_factory
        self._event_bus = event_bus
        self._logger = logger.bind(component="connection_manager")
        self._settings = settings
        self._cookie_provider = cookie_provider

        self._breaker = CircuitBreaker(
            failure_threshold=settings.circuit_failure_threshold,
            cooldown_seconds=settings.circuit_cooldown_seconds,
            logger=self._logger,
            clock=clock,
        )

        self._initialized = False
        self._state = ConnectionState.DISCONNECTED
        self._transport: DuplexTransportProtocol | None = None
        self._credential: str | None = None
        self._manual_disconnect = False
        self._reconnect_attempts = 0
        self._generation = 0

        self._connect_task: asyncio.Task[Result[None, RealtimeConnectionError]] | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._attempts_reset_task: asyncio.Task[None] | None = None
        self._heartbeat: HeartbeatMonitor | None = None

        self._ready = asyncio.Event()
        self._handlers: dict[RealtimeEventType, list[RealtimeHandler]] = defaultdict(list)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def circuit_state(self) -> CircuitState:
        return self._breaker.state

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def connection_generation(self) -> int:
        """Number of successful connects so far; identifies the live connection."""
        return self._generation

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Prepare the manager. Idempotent.

        Must run inside an event loop; outside one it only logs.
        """
        if self._initialized:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning(
                "connection_initialize_skipped",
                reason="no_running_event_loop",
            )
            return

        self._initialized = True
        self._manual_disconnect = False
        self._logger.info("connection_manager_initialized")

    async def connect(
        self, credential: str | None = None
    ) -> Result[None, RealtimeConnectionError]:
        """Open the connection, or join the attempt already in flight.

        Args:
            credential: Optional bearer credential for the handshake. Kept for
                subsequent automatic reconnects.

        Returns:
            Success(None) once connected.
            Failure(RealtimeConnectionError) if the attempt failed or the
            circuit is open. A failed attempt has already scheduled a
            reconnect.
        """
        if not self._initialized:
            self.initialize()
            if not self._initialized:
                return Failure(
                    error=RealtimeConnectionError(
                        code=ErrorCode.CONNECTION_NOT_INITIALIZED,
                        message="Connection manager is not initialized",
                        circuit_state=self._breaker.state,
                    )
                )

        if credential is not None:
            self._credential = credential
        self._manual_disconnect = False

        if self.is_connected:
            return Success(value=None)

        if self._connect_task is not None and not self._connect_task.done():
            return await self._await_attempt(self._connect_task)

        self._cancel_task(self._reconnect_task)
        self._reconnect_task = None

        task = self._start_attempt()
        if task is None:
            self._logger.info(
                "connect_rejected_circuit_open",
                remaining_cooldown=round(self._breaker.remaining_cooldown(), 3),
            )
            self._schedule_reconnect()
            return Failure(
                error=RealtimeConnectionError(
                    code=ErrorCode.CIRCUIT_OPEN,
                    message="Realtime connection is temporarily unavailable",
                    circuit_state=self._breaker.state,
                    attempt=self._reconnect_attempts,
                )
            )
        return await self._await_attempt(task)

    async def disconnect(self) -> None:
        """Tear down the connection and stop the heartbeat.

        Registered handlers and circuit breaker state are kept. Automatic
        reconnection stays off until the next connect().
        """
        self._manual_disconnect = True
        self._cancel_task(self._reconnect_task)
        self._reconnect_task = None
        self._cancel_task(self._connect_task)
        self._connect_task = None

        was_connected = self._transport is not None
        await self._teardown()
        if self._state != ConnectionState.DISCONNECTED:
            await self._transition(ConnectionState.DISCONNECTED, reason="manual_disconnect")
        if was_connected:
            await self._dispatch(
                RealtimeEventType.DISCONNECT, LifecyclePayload(reason="manual_disconnect")
            )
            self._logger.info("connection_closed", reason="manual_disconnect")

    async def destroy(self) -> None:
        """Disconnect and remove every registered handler."""
        await self.disconnect()
        self._cancel_task(self._attempts_reset_task)
        self._attempts_reset_task = None
        removed = sum(len(handlers) for handlers in self._handlers.values())
        self._handlers.clear()
        self._credential = None
        self._initialized = False
        self._logger.info("connection_manager_destroyed", handlers_removed=removed)

    # =========================================================================
    # Handlers and messaging
    # =========================================================================

    def on(self, event_type: RealtimeEventType, handler: RealtimeHandler) -> None:
        """Register an async handler for an inbound or lifecycle kind."""
        if get_direction(event_type) == MessageDirection.OUTBOUND:
            raise ValueError(f"{event_type.value} is an outbound message kind")
        self._handlers[event_type].append(handler)

    def off(self, event_type: RealtimeEventType, handler: RealtimeHandler) -> bool:
        """Remove one registration of handler.

        Returns:
            True if the handler was registered.
        """
        handlers = self._handlers.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event_type]
        return True

    def listener_count(self, event_type: RealtimeEventType | None = None) -> int:
        """Registered handlers for one kind, or for all kinds."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())

    async def emit(
        self,
        event_type: RealtimeEventType,
        payload: OutboundPayload | None = None,
    ) -> bool:
        """Send an outbound message if connected.

        Args:
            event_type: Outbound message kind.
            payload: Typed payload (None sends an empty object).

        Returns:
            True if the message was handed to the transport.

        Raises:
            ValueError: If event_type is not an outbound kind.
        """
        if get_direction(event_type) != MessageDirection.OUTBOUND:
            raise ValueError(f"{event_type.value} is not an outbound message kind")

        transport = self._transport
        if not self.is_connected or transport is None:
            self._logger.debug("realtime_emit_skipped", event=event_type.value)
            return False

        try:
            await transport.send(event_type.value, payload.to_wire() if payload else {})
        except TransportClosedError as e:
            self._logger.debug(
                "realtime_emit_failed", event=event_type.value, reason=e.reason
            )
            return False
        return True

    async def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Wait for the connection to become ready.

        Args:
            timeout: Maximum wait in seconds (None waits indefinitely).

        Returns:
            True if connected, False if the timeout elapsed first.
        """
        if self.is_connected:
            return True
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return self.is_connected

    # =========================================================================
    # Connection attempts
    # =========================================================================

    def _start_attempt(
        self,
    ) -> asyncio.Task[Result[None, RealtimeConnectionError]] | None:
        if self._connect_task is not None and not self._connect_task.done():
            return self._connect_task
        if not self._breaker.allow_attempt():
            return None
        self._connect_task = asyncio.create_task(
            self._attempt_connection(), name="authsync-connect"
        )
        return self._connect_task

    async def _await_attempt(
        self, task: asyncio.Task[Result[None, RealtimeConnectionError]]
    ) -> Result[None, RealtimeConnectionError]:
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return Failure(
                error=RealtimeConnectionError(
                    code=ErrorCode.CONNECTION_CLOSED,
                    message="Connection attempt was cancelled",
                    circuit_state=self._breaker.state,
                    attempt=self._reconnect_attempts,
                )
            )

    async def _attempt_connection(self) -> Result[None, RealtimeConnectionError]:
        attempt = self._reconnect_attempts
        await self._transition(ConnectionState.CONNECTING)
        transport = self._transport_factory()

        try:
            await transport.open(headers=self._handshake_headers())
        except TransportOpenError as e:
            self._breaker.record_failure()
            await self._safe_close(transport)
            await self._transition(ConnectionState.DISCONNECTED, reason="connect_failed")
            self._logger.warning(
                "connection_attempt_failed",
                attempt=attempt,
                error=str(e),
                circuit_state=self._breaker.state.value,
                consecutive_failures=self._breaker.failure_count,
            )
            self._schedule_reconnect()
            return Failure(
                error=RealtimeConnectionError(
                    code=ErrorCode.CONNECTION_FAILED,
                    message="Unable to establish realtime connection",
                    circuit_state=self._breaker.state,
                    attempt=attempt,
                    details={"error": str(e)},
                )
            )
        except asyncio.CancelledError:
            await self._safe_close(transport)
            self._state = ConnectionState.DISCONNECTED
            raise

        self._transport = transport
        self._breaker.record_success()
        self._reconnect_attempts = 0
        self._cancel_task(self._attempts_reset_task)
        self._attempts_reset_task = None
        self._generation += 1

        self._receive_task = asyncio.create_task(
            self._receive_loop(transport), name="authsync-receive"
        )
        self._heartbeat = HeartbeatMonitor(
            send_ping=self._send_ping,
            on_timeout=self._handle_heartbeat_timeout,
            interval_seconds=self._settings.heartbeat_interval_seconds,
            timeout_seconds=self._settings.heartbeat_timeout_seconds,
            logger=self._logger,
        )
        self._heartbeat.start()

        await self._transition(ConnectionState.CONNECTED)
        self._logger.info(
            "connection_established",
            generation=self._generation,
            after_attempts=attempt,
        )
        # Handlers run before queued operations are released
        await self._dispatch(RealtimeEventType.CONNECT, LifecyclePayload())
        if self._transport is transport:
            self._ready.set()
        return Success(value=None)

    def _handshake_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._credential:
            headers["Authorization"] = f"{BEARER_PREFIX}{self._credential}"
        if self._cookie_provider is not None:
            cookie = self._cookie_provider()
            if cookie:
                headers["Cookie"] = cookie
        return headers

    # =========================================================================
    # Reconnection
    # =========================================================================

    def _schedule_reconnect(self) -> None:
        if self._manual_disconnect or not self._initialized:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return

        circuit = self._breaker.state
        if circuit == CircuitState.OPEN:
            delay = self._breaker.remaining_cooldown()
            self._logger.info(
                "reconnect_deferred_circuit_open",
                delay_seconds=round(delay, 3),
            )
        elif circuit == CircuitState.HALF_OPEN:
            delay = 0.0
        elif self._reconnect_attempts >= self._settings.reconnect_max_attempts:
            self._logger.warning(
                "reconnect_gave_up",
                attempts=self._reconnect_attempts,
            )
            self._schedule_attempts_reset()
            return
        else:
            delay = self._settings.reconnect_base_delay_seconds * (
                2**self._reconnect_attempts
            )
            self._reconnect_attempts += 1
            self._logger.info(
                "reconnect_scheduled",
                attempt=self._reconnect_attempts,
                delay_seconds=delay,
            )

        self._reconnect_task = asyncio.create_task(
            self._reconnect_after(delay), name="authsync-reconnect"
        )

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._reconnect_task = None
        if self._manual_disconnect or not self._initialized or self.is_connected:
            return
        if self._start_attempt() is None:
            # Still open: wait for the rest of the cool-down
            self._schedule_reconnect()

    def _schedule_attempts_reset(self) -> None:
        if self._attempts_reset_task is not None and not self._attempts_reset_task.done():
            return
        self._attempts_reset_task = asyncio.create_task(
            self._reset_attempts_after(self._settings.reconnect_reset_seconds),
            name="authsync-reconnect-reset",
        )

    async def _reset_attempts_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._attempts_reset_task = None
        self._reconnect_attempts = 0
        self._logger.debug("reconnect_attempts_reset")

    # =========================================================================
    # Receiving and drop detection
    # =========================================================================

    async def _receive_loop(self, transport: DuplexTransportProtocol) -> None:
        try:
            while True:
                name, data = await transport.receive()
                await self._handle_frame(name, data)
        except TransportClosedError as e:
            if transport is self._transport:
                await self._handle_drop(e.reason)

    async def _handle_frame(self, name: str, data: Any) -> None:
        parsed = parse_inbound(name, data)
        if parsed is None:
            self._logger.debug("realtime_unknown_event", event=name)
            return

        event_type, payload = parsed
        if event_type == RealtimeEventType.PONG:
            if self._heartbeat is not None:
                self._heartbeat.acknowledge()
        elif isinstance(payload, ForceLogoutPayload):
            await self._event_bus.publish(
                ForcedLogoutReceived(
                    reason=payload.reason,
                    message=payload.message,
                    server_timestamp=payload.timestamp,
                )
            )
        elif isinstance(payload, RateLimitExceededPayload):
            await self._event_bus.publish(
                RateLimitExceeded(limit_type=payload.limit_type, message=payload.message)
            )

        await self._dispatch(event_type, payload)

    async def _handle_heartbeat_timeout(self) -> None:
        await self._handle_drop("heartbeat_timeout")

    async def _handle_drop(self, reason: str) -> None:
        if self._transport is None:
            return
        await self._teardown()
        await self._transition(ConnectionState.DISCONNECTED, reason=reason)
        self._logger.warning("connection_lost", reason=reason)
        await self._dispatch(RealtimeEventType.DISCONNECT, LifecyclePayload(reason=reason))
        self._schedule_reconnect()

    async def _teardown(self) -> None:
        transport, self._transport = self._transport, None
        self._ready.clear()
        if self._heartbeat is not None:
            self._heartbeat.stop()
            self._heartbeat = None
        self._cancel_task(self._receive_task)
        self._receive_task = None
        if transport is not None:
            await self._safe_close(transport)

    async def _send_ping(self) -> bool:
        return await self.emit(RealtimeEventType.PING, PingPayload(sent_at=time.time()))

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _dispatch(self, event_type: RealtimeEventType, payload: Any) -> None:
        handlers = list(self._handlers.get(event_type, []))
        if not handlers:
            return
        results = await asyncio.gather(
            *(handler(payload) for handler in handlers),
            return_exceptions=True,
        )
        for idx, result in enumerate(results):
            if isinstance(result, Exception):
                self._logger.warning(
                    "realtime_handler_failed",
                    event=event_type.value,
                    handler_name=getattr(handlers[idx], "__name__", repr(handlers[idx])),
                    error_type=type(result).__name__,
                    error_message=str(result),
                )

    async def _transition(
        self, new_state: ConnectionState, *, reason: str | None = None
    ) -> None:
        previous = self._state
        if previous == new_state:
            return
        self._state = new_state
        await self._event_bus.publish(
            ConnectionStateChanged(
                previous=previous,
                current=new_state,
                circuit_state=self._breaker.state,
                reason=reason,
            )
        )

    async def _safe_close(self, transport: DuplexTransportProtocol) -> None:
        try:
            await transport.close()
        except (OSError, TransportClosedError) as e:
            self._logger.debug("transport_close_failed", error=str(e))

    @staticmethod
    def _cancel_task(task: asyncio.Task[Any] | None) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
