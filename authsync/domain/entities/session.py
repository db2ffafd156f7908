"""Session entity: the authenticated identity held by the client.

Pure data, no I/O. The Session Manager is the only writer of the shared
Session; everything else reads it.

Business Rules:
    - Only a verified identity may become the active Session
    - A Session is replaced wholesale, never mutated in place
    - Preference changes go through with_preferences() and replace_identity()
"""

from dataclasses import dataclass, field, replace
from typing import Any

from authsync.domain.enums import UserRole


@dataclass(frozen=True, slots=True, kw_only=True)
class Session:
    """Authenticated identity.

    Attributes:
        id: Opaque server-side user identifier.
        email: Account email address.
        name: Display name.
        is_verified: Email verification flag. Unverified identities are never
            installed.
        roles: Role names granted by the server.
        two_factor_enabled: Whether the account uses a second factor.
        locale: Preferred language, None when unset.
        theme: Preferred theme, None when unset.

    Example:
        >>> session = Session.from_payload({
        ...     "id": "u1", "email": "a@b.co", "name": "Ann",
        ...     "isVerified": True, "roles": ["CUSTOMER"],
        ... })
        >>> session.has_role(UserRole.CUSTOMER)
        True
    """

    id: str
    email: str
    name: str
    is_verified: bool
    roles: frozenset[str] = field(default_factory=frozenset)
    two_factor_enabled: bool = False
    locale: str | None = None
    theme: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Session":
        """Build a Session from a server user object.

        Accepts the camelCase shape returned by the API (`isVerified`,
        `twoFactorEnabled`, `preferences.language`) as well as snake_case keys.

        Args:
            payload: User object from a REST response or realtime event.

        Returns:
            Session built from the payload.

        Raises:
            ValueError: If the identifier is missing.
        """
        user_id = payload.get("id") or payload.get("_id")
        if not user_id:
            raise ValueError("user payload has no id")

        raw_roles = payload.get("roles")
        if raw_roles is None and payload.get("role"):
            raw_roles = [payload["role"]]
        preferences = payload.get("preferences") or {}

        return cls(
            id=str(user_id),
            email=str(payload.get("email", "")),
            name=str(payload.get("name", "")),
            is_verified=bool(payload.get("isVerified", payload.get("is_verified", False))),
            roles=frozenset(str(role) for role in raw_roles or ()),
            two_factor_enabled=bool(
                payload.get("twoFactorEnabled", payload.get("two_factor_enabled", False))
            ),
            locale=preferences.get("language") or preferences.get("locale"),
            theme=preferences.get("theme"),
        )

    def has_role(self, role: UserRole | str) -> bool:
        return str(role) in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(UserRole.ADMIN) or self.has_role(UserRole.SUPERADMIN)

    def with_preferences(
        self, *, locale: str | None = None, theme: str | None = None
    ) -> "Session":
        """Return a copy with updated preferences (unset values kept)."""
        return replace(
            self,
            locale=locale if locale is not None else self.locale,
            theme=theme if theme is not None else self.theme,
        )
