"""Application result DTOs."""

from authsync.application.dtos.auth_dtos import (
    LoginOutcome,
    RegistrationAccepted,
    SessionEstablished,
    TwoFactorRequired,
    VerificationRequired,
)

__all__ = [
    "LoginOutcome",
    "RegistrationAccepted",
    "SessionEstablished",
    "TwoFactorRequired",
    "VerificationRequired",
]
