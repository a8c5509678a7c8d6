"""
Unit tests for the session and identity lifecycle.
"""

from datetime import timedelta

import jwt
import pytest

from ecovision.auth.models import Identity
from ecovision.auth.permissions import Role
from ecovision.errors import (
    AuthError,
    AuthFailure,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ecovision.records.models import ClassificationDraft, ReportDraft


def classification_draft(**overrides):
    values = dict(
        item_name="USB Cable",
        category="Electronic Accessory",
        hazardous_materials=(),
        confidence=92.8,
        safety_level="low",
    )
    values.update(overrides)
    return ClassificationDraft(**values)


def summary_draft(title="Monthly summary"):
    return ReportDraft(title=title, type="summary", content={"kind": "summary", "text": "ok"})


class TestSignUp:
    """Test identity creation."""

    def test_sign_up_creates_member(self, app):
        """Test sign-up issues a claim for a member identity."""
        claim = app.sessions.sign_up("  Alice ", "Alice@Example.com")

        assert claim.identity.display_name == "Alice"
        assert claim.identity.email == "alice@example.com"
        assert claim.identity.role == Role.MEMBER
        assert claim.identity.classifications_count == 0
        assert claim.expires_at - claim.issued_at == timedelta(hours=24)

    def test_explicit_admin_request(self, app):
        """Test only requested_role='admin' yields an admin."""
        claim = app.sessions.sign_up("Root", "root@example.com", requested_role="admin")
        assert claim.identity.role == Role.ADMIN

    def test_duplicate_email_rejected(self, app, alice):
        """Test the same email cannot register twice."""
        with pytest.raises(AuthError) as exc_info:
            app.sessions.sign_up("Other", "ALICE@example.com")
        assert exc_info.value.reason == AuthFailure.ALREADY_EXISTS
        assert len(app.sessions.directory.list_identities()) == 1

    def test_blank_name_rejected(self, app):
        """Test validation runs before anything is stored."""
        with pytest.raises(ValidationError) as exc_info:
            app.sessions.sign_up("   ", "x@example.com")
        assert exc_info.value.field == "display_name"
        assert not app.sessions.check_exists("x@example.com")

    def test_check_exists(self, app, alice):
        """Test existence lookup is case-insensitive."""
        assert app.sessions.check_exists("alice@example.com")
        assert app.sessions.check_exists("ALICE@EXAMPLE.COM")
        assert not app.sessions.check_exists("nobody@example.com")


class TestAuthenticate:
    """Test claim validation."""

    def test_returns_stored_identity(self, app):
        """Test authenticate loads from the identity table."""
        claim = app.sessions.sign_up("Alice", "alice@example.com")
        identity = app.sessions.authenticate(claim)

        assert isinstance(identity, Identity)
        assert identity.id == claim.identity.id
        assert identity is not claim.identity

    def test_accepts_raw_token(self, app):
        """Test a bare token string authenticates."""
        claim = app.sessions.sign_up("Alice", "alice@example.com")
        assert app.sessions.authenticate(claim.token).id == claim.identity.id

    def test_expired_claim(self, app, clock):
        """Test claims past their expiry are rejected."""
        claim = app.sessions.sign_up("Alice", "alice@example.com")
        clock.advance(24 * 3600 + 1)

        with pytest.raises(AuthError) as exc_info:
            app.sessions.authenticate(claim)
        assert exc_info.value.reason == AuthFailure.EXPIRED

    def test_expiry_covers_full_ttl(self, app, clock):
        """Test sub-second issue times do not shorten the claim's lifetime."""
        clock.advance(0.5)
        claim = app.sessions.sign_up("Alice", "alice@example.com")
        assert claim.expires_at >= clock.now + timedelta(hours=24)

        clock.advance(24 * 3600)
        assert app.sessions.authenticate(claim).id == claim.identity.id

    def test_garbage_token(self, app):
        """Test unparseable tokens are malformed."""
        with pytest.raises(AuthError) as exc_info:
            app.sessions.authenticate("header.payload.signature")
        assert exc_info.value.reason == AuthFailure.MALFORMED

    def test_empty_token(self, app):
        """Test empty tokens are malformed."""
        with pytest.raises(AuthError) as exc_info:
            app.sessions.authenticate("")
        assert exc_info.value.reason == AuthFailure.MALFORMED

    def test_wrong_signature(self, app, clock):
        """Test tokens signed with another key are malformed."""
        claim = app.sessions.sign_up("Alice", "alice@example.com")
        payload = jwt.decode(claim.token, options={"verify_signature": False})
        forged = jwt.encode(payload, "some-other-secret", algorithm="HS256")

        with pytest.raises(AuthError) as exc_info:
            app.sessions.authenticate(forged)
        assert exc_info.value.reason == AuthFailure.MALFORMED

    def test_sign_out_revokes(self, app):
        """Test a signed-out claim no longer authenticates."""
        claim = app.sessions.sign_up("Alice", "alice@example.com")
        assert app.sessions.sign_out(claim)
        assert not app.sessions.sign_out(claim)

        with pytest.raises(AuthError) as exc_info:
            app.sessions.authenticate(claim)
        assert exc_info.value.reason == AuthFailure.EXPIRED

    def test_sign_in_refreshes_last_login(self, app, clock):
        """Test sign-in issues a new claim and stamps last_login_at."""
        app.sessions.sign_up("Alice", "alice@example.com")
        clock.advance(3600)

        claim = app.sessions.sign_in("alice@example.com")
        assert claim.identity.last_login_at == clock.now
        assert app.sessions.authenticate(claim).id == claim.identity.id

    def test_sign_in_unknown_email(self, app):
        """Test sign-in for an unknown email."""
        with pytest.raises(NotFoundError):
            app.sessions.sign_in("ghost@example.com")

    def test_cleanup_expired_sessions(self, app, clock):
        """Test expired session entries are removed."""
        app.sessions.sign_up("Alice", "alice@example.com")
        app.sessions.sign_up("Bob", "bob@example.com")
        clock.advance(25 * 3600)

        assert app.sessions.cleanup_expired_sessions() == 2
        assert app.sessions.cleanup_expired_sessions() == 0


class TestUpdateProfile:
    """Test profile updates and claim re-issue."""

    def test_update_reissues_claim(self, app):
        """Test the new claim carries the update and the old one dies."""
        old_claim = app.sessions.sign_up("Alice", "alice@example.com")
        identity = app.sessions.authenticate(old_claim)

        new_claim = app.sessions.update_profile(identity, {"display_name": "Alicia", "bio": "recycler"})

        assert new_claim.jti != old_claim.jti
        assert new_claim.identity.display_name == "Alicia"
        assert old_claim.identity.display_name == "Alice"
        assert app.sessions.authenticate(new_claim).bio == "recycler"

        with pytest.raises(AuthError) as exc_info:
            app.sessions.authenticate(old_claim)
        assert exc_info.value.reason == AuthFailure.EXPIRED

    def test_role_cannot_be_patched(self, app, alice):
        """Test non-profile fields are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            app.sessions.update_profile(alice, {"role": "admin"})
        assert exc_info.value.field == "role"
        assert app.sessions.directory.get_by_id(alice.id).role == Role.MEMBER

    def test_blank_display_name_rejected(self, app, alice):
        """Test display name cannot be blanked."""
        with pytest.raises(ValidationError):
            app.sessions.update_profile(alice, {"display_name": "  "})


class TestResetOwnedData:
    """Test owned-data resets."""

    def test_reset_self(self, app, alice, bob):
        """Test a member's reset removes only their records and re-issues the claim."""
        app.classifications.create(alice, classification_draft())
        app.reports.create(alice, summary_draft())
        app.classifications.create(bob, classification_draft())
        app.sessions.record_progress(alice, 1, ["newbie"], False)

        claim = app.sessions.reset_owned_data(alice)

        assert claim is not None
        assert claim.identity.classifications_count == 0
        assert claim.identity.achievements == []
        assert app.classifications.list(alice) == []
        assert app.reports.list(alice) == []
        assert len(app.classifications.list(bob)) == 1
        assert app.sessions.authenticate(claim).id == alice.id

    def test_member_cannot_reset_others(self, app, alice, bob):
        """Test members may only target themselves."""
        app.classifications.create(bob, classification_draft())

        with pytest.raises(PermissionDeniedError):
            app.sessions.reset_owned_data(alice, target_id=bob.id)
        assert len(app.classifications.list(bob)) == 1

    def test_admin_resets_other_tenant(self, app, admin):
        """Test admins may reset another identity, whose sessions are revoked."""
        bob_claim = app.sessions.sign_up("Bob", "bob@example.com")
        bob = app.sessions.authenticate(bob_claim)
        app.classifications.create(bob, classification_draft())

        assert app.sessions.reset_owned_data(admin, target_id=bob.id) is None
        assert app.classifications.list(admin) == []

        with pytest.raises(AuthError):
            app.sessions.authenticate(bob_claim)

    def test_reset_unknown_target(self, app, admin):
        """Test resetting a missing identity."""
        with pytest.raises(NotFoundError):
            app.sessions.reset_owned_data(admin, target_id="missing")
