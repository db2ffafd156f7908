"""Application layer: session, room, coordination services and the runtime."""
