"""Unit tests for the Session entity, RoomMembership and the Email value object."""

import pytest

from authsync.domain.entities import MembershipStatus, RoomMembership, Session
from authsync.domain.enums import RoomPurpose, UserRole
from authsync.domain.value_objects import Email
from tests.conftest import verified_user


@pytest.mark.unit
class TestSessionFromPayload:
    """Building a Session from server user objects."""

    def test_camel_case_payload(self):
        session = Session.from_payload(
            verified_user(preferences={"language": "fr", "theme": "dark"})
        )

        assert session.id == "user-1"
        assert session.is_verified is True
        assert session.roles == frozenset({"CUSTOMER"})
        assert session.locale == "fr"
        assert session.theme == "dark"

    def test_snake_case_and_single_role(self):
        session = Session.from_payload(
            {"_id": 42, "email": "a@b.co", "is_verified": False, "role": "ADMIN"}
        )

        assert session.id == "42"
        assert session.is_verified is False
        assert session.has_role(UserRole.ADMIN)

    def test_missing_verification_flag_means_unverified(self):
        assert Session.from_payload({"id": "u1"}).is_verified is False

    def test_missing_id_rejected(self):
        with pytest.raises(ValueError):
            Session.from_payload({"email": "a@b.co"})


@pytest.mark.unit
class TestSessionBehavior:
    """Roles and immutable updates."""

    @pytest.mark.parametrize(
        ("roles", "is_admin"),
        [(["ADMIN"], True), (["SUPERADMIN"], True), (["CUSTOMER"], False), ([], False)],
    )
    def test_is_admin(self, roles, is_admin):
        assert Session.from_payload(verified_user(roles=roles)).is_admin is is_admin

    def test_with_preferences_returns_copy(self):
        session = Session.from_payload(verified_user(preferences={"language": "en"}))

        updated = session.with_preferences(theme="dark")

        assert updated is not session
        assert updated.locale == "en"
        assert updated.theme == "dark"
        assert session.theme is None

    def test_session_is_frozen(self):
        session = Session.from_payload(verified_user())

        with pytest.raises(AttributeError):
            session.is_verified = False  # type: ignore[misc]


@pytest.mark.unit
class TestRoomMembership:
    def test_topic_and_sent_flag(self):
        membership = RoomMembership(
            purpose=RoomPurpose.PENDING_VERIFICATION, subject="ann@example.com"
        )

        assert membership.topic == "pending-verification:ann@example.com"
        assert membership.was_sent is False

        membership.status = MembershipStatus.CONFIRMED
        assert membership.was_sent is True


@pytest.mark.unit
class TestEmail:
    """Email normalization keys room topics."""

    def test_normalizes_case_and_whitespace(self):
        assert Email("  Ann@Example.COM ").value == "ann@example.com"

    def test_equal_after_normalization(self):
        assert Email("ANN@example.com") == Email("ann@EXAMPLE.com")

    @pytest.mark.parametrize("raw", ["", "not-an-email", "a@", "@example.com"])
    def test_invalid_rejected(self, raw):
        with pytest.raises(ValueError):
            Email(raw)
