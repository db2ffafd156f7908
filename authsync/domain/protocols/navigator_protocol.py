"""Navigator protocol (port) for client-side redirects.

The Session Manager decides where the user should go (forced logout, email
verified); the host application decides how to get there.
"""

from typing import Protocol


class NavigatorProtocol(Protocol):
    """Protocol for the host application's router."""

    @property
    def current_path(self) -> str:
        """Path currently displayed (e.g. "/auth")."""
        ...

    def navigate(self, path: str) -> None:
        """Move to another path.

        Args:
            path: Absolute in-app path.
        """
        ...
