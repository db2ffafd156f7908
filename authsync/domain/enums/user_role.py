"""Roles carried by an authenticated identity."""

from enum import StrEnum


class UserRole(StrEnum):
    """Known server roles.

    Unknown role strings are preserved on the Session as plain strings.
    """

    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"
