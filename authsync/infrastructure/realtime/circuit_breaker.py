"""Circuit breaker guarding realtime reconnection.

Counts consecutive connection failures. Once the threshold is reached the
circuit opens and attempts are refused until the cool-down elapses; the
circuit then reports HALF_OPEN and grants exactly one probe, whose outcome
closes or re-opens it.

The breaker is a plain state machine: it never sleeps or schedules anything.
The Connection Manager asks allow_attempt() before connecting and reports the
outcome with record_success()/record_failure().

Usage:
    breaker = CircuitBreaker(failure_threshold=5, cooldown_seconds=30.0)
    if breaker.allow_attempt():
        ok = await try_connect()
        breaker.record_success() if ok else breaker.record_failure()
    else:
        await asyncio.sleep(breaker.remaining_cooldown())
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from authsync.domain.enums import CircuitState
from authsync.domain.protocols.logger_protocol import LoggerProtocol


@dataclass
class CircuitBreakerStats:
    """Counters for diagnostics.

    Attributes:
        total_attempts: Attempts granted by allow_attempt().
        rejected_attempts: Attempts refused while open or probing.
        consecutive_failures: Failures since the last success.
        circuit_opens: Times the circuit has opened.
        last_failure_time: Clock reading of the most recent failure.
        last_reset_time: Clock reading of the most recent close.
        state_changes: (from, to, clock reading) history.
    """

    total_attempts: int = 0
    rejected_attempts: int = 0
    consecutive_failures: int = 0
    circuit_opens: int = 0
    last_failure_time: float | None = None
    last_reset_time: float | None = None
    state_changes: list[tuple[str, str, float]] = field(default_factory=list)


class CircuitBreaker:
    """Consecutive-failure circuit breaker with a single half-open probe.

    Attributes:
        _threshold: Failures that open the circuit.
        _cooldown: Seconds the circuit stays open.
        _clock: Monotonic time source (injectable for tests).
        _state: Stored state; OPEN turns into HALF_OPEN lazily once the
            cool-down elapses.
        _opened_at: Clock reading when the circuit last opened.
        _probe_in_flight: Whether the single half-open probe was granted.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        cooldown_seconds: float = 30.0,
        logger: LoggerProtocol | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "realtime",
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self._threshold = failure_threshold
        self._cooldown = cooldown_seconds
        self._logger = logger
        self._clock = clock
        self._name = name

        self._state = CircuitState.CLOSED
        self._opened_at: float | None = None
        self._probe_in_flight = False
        self.stats = CircuitBreakerStats(last_reset_time=clock())

    @property
    def state(self) -> CircuitState:
        """Current state, promoting OPEN to HALF_OPEN after the cool-down."""
        if self._state == CircuitState.OPEN and self.remaining_cooldown() <= 0:
            self._change_state(CircuitState.HALF_OPEN)
        return self._state

    @property
    def failure_count(self) -> int:
        return self.stats.consecutive_failures

    def remaining_cooldown(self) -> float:
        """Seconds until an open circuit allows a probe (0 when not open)."""
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return 0.0
        return max(0.0, self._opened_at + self._cooldown - self._clock())

    def allow_attempt(self) -> bool:
        """Ask permission for one connection attempt.

        Returns:
            True while closed; True exactly once while half-open; False while
            open or while the half-open probe is outstanding.
        """
        state = self.state
        if state == CircuitState.CLOSED:
            self.stats.total_attempts += 1
            return True
        if state == CircuitState.HALF_OPEN and not self._probe_in_flight:
            self._probe_in_flight = True
            self.stats.total_attempts += 1
            return True
        self.stats.rejected_attempts += 1
        return False

    def record_success(self) -> None:
        """Report a successful attempt; closes the circuit."""
        self._probe_in_flight = False
        self.stats.consecutive_failures = 0
        if self._state != CircuitState.CLOSED:
            self._change_state(CircuitState.CLOSED)
        self._opened_at = None
        self.stats.last_reset_time = self._clock()

    def record_failure(self) -> None:
        """Report a failed attempt; may open (or re-open) the circuit."""
        now = self._clock()
        self.stats.consecutive_failures += 1
        self.stats.last_failure_time = now

        if self._state == CircuitState.HALF_OPEN or self._probe_in_flight:
            self._probe_in_flight = False
            self._open(now)
        elif (
            self._state == CircuitState.CLOSED
            and self.stats.consecutive_failures >= self._threshold
        ):
            self._open(now)

    def reset(self) -> None:
        """Force the circuit closed and clear the failure count."""
        self._probe_in_flight = False
        self.stats.consecutive_failures = 0
        self._opened_at = None
        if self._state != CircuitState.CLOSED:
            self._change_state(CircuitState.CLOSED)
        self.stats.last_reset_time = self._clock()

    def get_stats(self) -> dict[str, Any]:
        """Snapshot for diagnostics."""
        return {
            "name": self._name,
            "state": self.state.value,
            "consecutive_failures": self.stats.consecutive_failures,
            "total_attempts": self.stats.total_attempts,
            "rejected_attempts": self.stats.rejected_attempts,
            "circuit_opens": self.stats.circuit_opens,
            "remaining_cooldown": round(self.remaining_cooldown(), 3),
        }

    def _open(self, now: float) -> None:
        self._opened_at = now
        self.stats.circuit_opens += 1
        self._change_state(CircuitState.OPEN)
        if self._logger is not None:
            self._logger.warning(
                "circuit_opened",
                circuit=self._name,
                consecutive_failures=self.stats.consecutive_failures,
                cooldown_seconds=self._cooldown,
            )

    def _change_state(self, new_state: CircuitState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        self.stats.state_changes.append((old_state.value, new_state.value, self._clock()))
        if self._logger is not None:
            self._logger.info(
                "circuit_state_changed",
                circuit=self._name,
                from_state=old_state.value,
                to_state=new_state.value,
            )
