"""Domain events and realtime message types."""
