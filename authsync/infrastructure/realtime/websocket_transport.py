"""WebSocket transport built on the websockets library.

One instance wraps one physical connection. Frames are JSON text messages
shaped as {"event": <name>, "data": <payload>}. Liveness is handled by the
application-level heartbeat, so the library's own keepalive pings are off.
"""

import json
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from authsync.domain.protocols.duplex_transport_protocol import (
    TransportClosedError,
    TransportOpenError,
)
from authsync.domain.protocols.logger_protocol import LoggerProtocol


class WebSocketTransport:
    """DuplexTransportProtocol implementation over websockets.

    Attributes:
        _url: ws:// or wss:// endpoint.
        _open_timeout: Handshake timeout in seconds.
        _websocket: Live connection, None before open() and after close().
    """

    def __init__(
        self,
        url: str,
        *,
        logger: LoggerProtocol,
        open_timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._logger = logger
        self._open_timeout = open_timeout
        self._websocket: websockets.ClientConnection | None = None

    async def open(self, *, headers: dict[str, str]) -> None:
        try:
            self._websocket = await websockets.connect(
                self._url,
                additional_headers=headers or None,
                open_timeout=self._open_timeout,
                ping_interval=None,
                close_timeout=5,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            raise TransportOpenError(f"{type(e).__name__}: {e}") from e

    async def send(self, event: str, data: dict[str, Any]) -> None:
        if self._websocket is None:
            raise TransportClosedError("not_open")
        try:
            await self._websocket.send(json.dumps({"event": event, "data": data}))
        except ConnectionClosed as e:
            raise TransportClosedError("connection_closed") from e

    async def receive(self) -> tuple[str, Any]:
        if self._websocket is None:
            raise TransportClosedError("not_open")
        while True:
            try:
                raw = await self._websocket.recv()
            except ConnectionClosed as e:
                raise TransportClosedError("connection_closed") from e

            envelope = self._decode(raw)
            if envelope is not None:
                return envelope

    async def close(self) -> None:
        websocket, self._websocket = self._websocket, None
        if websocket is None:
            return
        try:
            await websocket.close()
        except (OSError, TimeoutError, WebSocketException) as e:
            self._logger.debug("websocket_close_failed", error=str(e))

    def _decode(self, raw: str | bytes) -> tuple[str, Any] | None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            self._logger.warning("websocket_frame_invalid_json", size=len(raw))
            return None
        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            self._logger.warning("websocket_frame_missing_event")
            return None
        return message["event"], message.get("data")
