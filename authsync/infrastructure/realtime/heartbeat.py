"""Application-level heartbeat for the realtime connection.

Sends a ping every interval and waits a bounded time for the pong. A missing
pong turns a silently dead connection into an observable disconnect by
calling on_timeout, after which the monitor stops itself.
"""

import asyncio
from collections.abc import Awaitable, Callable

from authsync.domain.protocols.logger_protocol import LoggerProtocol


class HeartbeatMonitor:
    """Ping/pong liveness probe bound to one connection.

    Attributes:
        _send_ping: Sends one ping; returns False when nothing was sent.
        _on_timeout: Called once when a pong does not arrive in time.
        _interval: Seconds between pings.
        _timeout: Seconds to wait for each pong.
    """

    def __init__(
        self,
        *,
        send_ping: Callable[[], Awaitable[bool]],
        on_timeout: Callable[[], Awaitable[None]],
        interval_seconds: float,
        timeout_seconds: float,
        logger: LoggerProtocol,
    ) -> None:
        self._send_ping = send_ping
        self._on_timeout = on_timeout
        self._interval = interval_seconds
        self._timeout = timeout_seconds
        self._logger = logger
        self._pong = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.missed = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="authsync-heartbeat")

    def stop(self) -> None:
        """Stop probing. Safe to call from within on_timeout."""
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def acknowledge(self) -> None:
        """Record a pong for the outstanding ping."""
        self._pong.set()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._pong = asyncio.Event()
            if not await self._send_ping():
                continue

            try:
                await asyncio.wait_for(self._pong.wait(), timeout=self._timeout)
            except TimeoutError:
                self.missed += 1
                self._logger.warning(
                    "heartbeat_timeout",
                    timeout_seconds=self._timeout,
                )
                self._task = None
                await self._on_timeout()
                return
