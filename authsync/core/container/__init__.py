"""Container module - Centralized dependency construction.

The container is organized into modules by concern:
- infrastructure: Logger singleton
- runtime: AuthRuntime composition root

Usage:
    from authsync.core.container import create_auth_runtime, get_logger
"""

from authsync.core.container.infrastructure import get_logger
from authsync.core.container.runtime import create_auth_runtime

__all__ = ["create_auth_runtime", "get_logger"]
