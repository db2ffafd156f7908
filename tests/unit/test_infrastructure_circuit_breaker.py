"""Unit tests for CircuitBreaker.

Tests cover:
- Opening after the failure threshold
- Refusing attempts during the cool-down
- Exactly one half-open probe after the cool-down
- Probe outcome closes or re-opens the circuit
- Statistics
"""

from unittest.mock import MagicMock

import pytest

from authsync.domain.enums import CircuitState
from authsync.infrastructure.realtime.circuit_breaker import CircuitBreaker
from tests.conftest import ManualClock


def _breaker(clock: ManualClock, threshold: int = 5) -> CircuitBreaker:
    return CircuitBreaker(
        failure_threshold=threshold,
        cooldown_seconds=30.0,
        logger=MagicMock(),
        clock=clock,
    )


@pytest.mark.unit
class TestCircuitBreakerOpening:
    """Consecutive failures open the circuit."""

    def test_stays_closed_below_threshold(self):
        breaker = _breaker(ManualClock())

        for _ in range(4):
            assert breaker.allow_attempt() is True
            breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 4

    def test_opens_after_five_consecutive_failures(self):
        breaker = _breaker(ManualClock())

        for _ in range(5):
            breaker.allow_attempt()
            breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.allow_attempt() is False
        assert breaker.stats.circuit_opens == 1

    def test_success_resets_consecutive_failures(self):
        breaker = _breaker(ManualClock())
        for _ in range(4):
            breaker.record_failure()

        breaker.record_success()
        breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 1


@pytest.mark.unit
class TestCircuitBreakerCooldown:
    """Open circuit refuses attempts until the cool-down elapses."""

    def _open(self, clock: ManualClock) -> CircuitBreaker:
        breaker = _breaker(clock)
        for _ in range(5):
            breaker.allow_attempt()
            breaker.record_failure()
        return breaker

    def test_refuses_every_attempt_during_cooldown(self):
        clock = ManualClock()
        breaker = self._open(clock)

        clock.advance(29.0)

        assert [breaker.allow_attempt() for _ in range(10)] == [False] * 10
        assert breaker.stats.rejected_attempts == 10
        assert breaker.remaining_cooldown() == pytest.approx(1.0)

    def test_exactly_one_probe_after_cooldown(self):
        clock = ManualClock()
        breaker = self._open(clock)

        clock.advance(30.0)

        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.allow_attempt() is True
        assert breaker.allow_attempt() is False
        assert breaker.allow_attempt() is False

    def test_successful_probe_closes_circuit(self):
        clock = ManualClock()
        breaker = self._open(clock)
        clock.advance(30.0)
        breaker.allow_attempt()

        breaker.record_success()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.allow_attempt() is True

    def test_failed_probe_reopens_for_another_cooldown(self):
        clock = ManualClock()
        breaker = self._open(clock)
        clock.advance(30.0)
        breaker.allow_attempt()

        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.remaining_cooldown() == pytest.approx(30.0)
        assert breaker.stats.circuit_opens == 2


@pytest.mark.unit
class TestCircuitBreakerStats:
    """Diagnostics and manual reset."""

    def test_reset_forces_closed(self):
        clock = ManualClock()
        breaker = _breaker(clock, threshold=1)
        breaker.record_failure()

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.allow_attempt() is True

    def test_state_changes_are_recorded(self):
        clock = ManualClock()
        breaker = _breaker(clock, threshold=1)
        breaker.record_failure()
        clock.advance(30.0)
        _ = breaker.state
        breaker.allow_attempt()
        breaker.record_success()

        transitions = [(old, new) for old, new, _ in breaker.stats.state_changes]
        assert transitions == [
            ("closed", "open"),
            ("open", "half_open"),
            ("half_open", "closed"),
        ]

    def test_get_stats_snapshot(self):
        breaker = _breaker(ManualClock())
        breaker.allow_attempt()
        breaker.record_failure()

        stats = breaker.get_stats()

        assert stats["state"] == "closed"
        assert stats["consecutive_failures"] == 1
        assert stats["total_attempts"] == 1

    def test_rejects_zero_threshold(self):
        with pytest.raises(ValueError):
            CircuitBreaker(failure_threshold=0)
