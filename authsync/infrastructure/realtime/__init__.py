"""Realtime connection: transport, heartbeat, circuit breaker and manager."""

from authsync.infrastructure.realtime.circuit_breaker import CircuitBreaker
from authsync.infrastructure.realtime.connection_manager import ConnectionManager
from authsync.infrastructure.realtime.heartbeat import HeartbeatMonitor
from authsync.infrastructure.realtime.websocket_transport import WebSocketTransport

__all__ = ["CircuitBreaker", "ConnectionManager", "HeartbeatMonitor", "WebSocketTransport"]
