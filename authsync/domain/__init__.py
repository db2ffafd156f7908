"""Domain layer: entities, enums, events, errors and ports (no I/O)."""
