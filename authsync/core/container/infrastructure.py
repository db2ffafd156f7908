"""Infrastructure dependency factories.

Process-scoped singletons for services that are safe to share between
runtimes. Everything stateful about a session lives in AuthRuntime instead.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from authsync.core.config import get_settings

if TYPE_CHECKING:
    from authsync.domain.protocols.logger_protocol import LoggerProtocol


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Get logger singleton (process-scoped).

    Renderer and level come from settings: JSON when `log_json` is set,
    colored console output otherwise.

    Returns:
        Logger implementing LoggerProtocol.

    Usage:
        logger = get_logger()
        logger.info("session_installed", user_id=session.id)
    """
    from authsync.infrastructure.logging.console_adapter import ConsoleAdapter

    settings = get_settings()
    return ConsoleAdapter(use_json=settings.log_json, level=settings.log_level)
