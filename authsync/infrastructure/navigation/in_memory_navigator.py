"""In-memory navigator for headless hosts.

Tracks the current path and records navigation requests. Hosts with a real
router pass their own NavigatorProtocol implementation instead.
"""

from collections.abc import Callable

from authsync.domain.protocols.logger_protocol import LoggerProtocol


class InMemoryNavigator:
    """NavigatorProtocol implementation that records paths.

    Attributes:
        history: Every path navigated to, oldest first.
    """

    def __init__(
        self,
        *,
        logger: LoggerProtocol,
        initial_path: str = "/",
        on_navigate: Callable[[str], None] | None = None,
    ) -> None:
        self._logger = logger
        self._current_path = initial_path
        self._on_navigate = on_navigate
        self.history: list[str] = []

    @property
    def current_path(self) -> str:
        return self._current_path

    def navigate(self, path: str) -> None:
        self._logger.info("navigation_requested", from_path=self._current_path, to_path=path)
        self._current_path = path
        self.history.append(path)
        if self._on_navigate is not None:
            self._on_navigate(path)
