"""Infrastructure adapters: HTTP, websocket, cache, events, logging, storage."""
