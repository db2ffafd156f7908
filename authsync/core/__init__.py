"""Core package: result types, errors, enums, configuration and container."""
