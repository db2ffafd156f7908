"""Typed outcomes of authentication operations.

Returned inside Success(...) by the Session Manager. Failures travel as
DomainError inside Failure(...), so every branch a UI has to render is a
distinct type.

Usage:
    result = await session_manager.login(email, password)
    if isinstance(result, Success):
        match result.value:
            case SessionEstablished(session=session):
                ...
            case TwoFactorRequired(user_id=user_id):
                ...
            case VerificationRequired():
                ...
"""

from dataclasses import dataclass

from authsync.domain.entities import Session


@dataclass(frozen=True, slots=True)
class SessionEstablished:
    """A verified identity was installed as the active Session."""

    session: Session


@dataclass(frozen=True, slots=True)
class TwoFactorRequired:
    """Credentials accepted; a one-time code is still needed.

    Attributes:
        user_id: Pending identifier for complete_two_factor().
        email: Email of the pending account, when returned.
    """

    user_id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class VerificationRequired:
    """Credentials accepted but the email address is not verified yet."""

    email: str
    message: str | None = None


@dataclass(frozen=True, slots=True)
class RegistrationAccepted:
    """Account created; a verification email is on its way.

    Attributes:
        email: Normalized email of the new account.
        message: Server confirmation message.
    """

    email: str
    message: str


type LoginOutcome = SessionEstablished | TwoFactorRequired | VerificationRequired
