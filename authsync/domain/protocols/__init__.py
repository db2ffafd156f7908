"""Domain ports (structural protocols implemented by infrastructure)."""
