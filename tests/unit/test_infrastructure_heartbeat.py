"""Unit tests for HeartbeatMonitor."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from authsync.infrastructure.realtime.heartbeat import HeartbeatMonitor


@pytest.mark.unit
class TestHeartbeatMonitor:
    """Ping/pong liveness probing."""

    @pytest.mark.asyncio
    async def test_acknowledged_pings_keep_running(self):
        """Test pongs within the timeout keep the monitor alive."""
        on_timeout = AsyncMock()
        monitor: HeartbeatMonitor

        async def send_ping() -> bool:
            monitor.acknowledge()
            return True

        monitor = HeartbeatMonitor(
            send_ping=send_ping,
            on_timeout=on_timeout,
            interval_seconds=0.01,
            timeout_seconds=0.05,
            logger=MagicMock(),
        )
        monitor.start()
        await asyncio.sleep(0.08)

        assert monitor.is_running is True
        on_timeout.assert_not_awaited()
        monitor.stop()

    @pytest.mark.asyncio
    async def test_missing_pong_triggers_timeout_once(self):
        """Test a ping without pong calls on_timeout and stops the monitor."""
        on_timeout = AsyncMock()
        send_ping = AsyncMock(return_value=True)
        logger = MagicMock()
        monitor = HeartbeatMonitor(
            send_ping=send_ping,
            on_timeout=on_timeout,
            interval_seconds=0.01,
            timeout_seconds=0.02,
            logger=logger,
        )

        monitor.start()
        await asyncio.sleep(0.1)

        on_timeout.assert_awaited_once()
        assert monitor.missed == 1
        assert monitor.is_running is False
        logger.warning.assert_called_once()
        assert logger.warning.call_args[0][0] == "heartbeat_timeout"

    @pytest.mark.asyncio
    async def test_unsent_ping_does_not_time_out(self):
        """Test nothing is awaited when the ping could not be sent."""
        on_timeout = AsyncMock()
        monitor = HeartbeatMonitor(
            send_ping=AsyncMock(return_value=False),
            on_timeout=on_timeout,
            interval_seconds=0.01,
            timeout_seconds=0.01,
            logger=MagicMock(),
        )

        monitor.start()
        await asyncio.sleep(0.06)

        on_timeout.assert_not_awaited()
        monitor.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_probing(self):
        send_ping = AsyncMock(return_value=True)
        monitor = HeartbeatMonitor(
            send_ping=send_ping,
            on_timeout=AsyncMock(),
            interval_seconds=0.02,
            timeout_seconds=0.02,
            logger=MagicMock(),
        )

        monitor.start()
        monitor.stop()
        await asyncio.sleep(0.05)

        send_ping.assert_not_awaited()
        assert monitor.is_running is False
