"""
Session and identity manager.

Combines the identity directory and the claim codec into the full identity
lifecycle: sign-up, sign-in, claim validation, profile updates and data
resets. Every identity mutation re-issues the caller's claim.
"""

import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger

from ..clock import Clock, utc_now
from ..config import Settings, get_settings
from ..errors import AuthError, AuthFailure, NotFoundError, ValidationError
from ..storage import KeyValueStore
from .claims import ClaimCodec
from .directory import IdentityDirectory
from .models import PROFILE_FIELDS, Identity, SessionClaim, SessionRecord
from .permissions import AccessGuard, Permission, resolve_role


class SessionManager:
    """
    Identity lifecycle manager.

    Provides:
    - Sign-up / sign-in / sign-out
    - Claim validation against the identity table
    - Profile updates and owned-data resets with claim re-issue
    """

    def __init__(
        self,
        store: KeyValueStore,
        guard: Optional[AccessGuard] = None,
        record_stores: Sequence[Any] = (),
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize manager.

        Args:
            store: Key-value backend shared with the record stores
            guard: Access guard for admin checks
            record_stores: Stores purged by reset_owned_data (need ``purge_owner``)
            settings: Claim settings
            clock: Source of the current time
        """
        self.settings = settings or get_settings()
        self.clock = clock
        self.store = store
        self.directory = IdentityDirectory(store, clock=clock)
        self.codec = ClaimCodec(self.settings, clock=clock)
        self.guard = guard or AccessGuard()
        self.record_stores = list(record_stores)

    # ========================================================================
    # Sign-up / sign-in
    # ========================================================================

    def check_exists(self, email: str) -> bool:
        """Check whether an identity with this email is registered."""
        return self.directory.get_by_email(email) is not None

    def sign_up(self, name: str, email: str, requested_role: Optional[str] = None) -> SessionClaim:
        """
        Register a new identity and issue its first claim.

        Args:
            name: Display name
            email: Email address (stored lower-cased)
            requested_role: "admin" for an administrator, anything else for a member

        Returns:
            SessionClaim for the new identity

        Raises:
            ValidationError: If name or email is missing or malformed
            AuthError: ALREADY_EXISTS if the email is taken
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name:
            raise ValidationError("display_name", "must not be empty")
        if "@" not in email:
            raise ValidationError("email", "must be an email address")

        now = self.clock()
        identity = Identity(
            id=str(uuid.uuid4()),
            display_name=name,
            email=email,
            role=resolve_role(requested_role),
            created_at=now,
            last_login_at=now,
        )

        with self.store.lock:
            if not self.directory.add(identity):
                logger.warning(f"Sign-up rejected: {email} already registered")
                raise AuthError(AuthFailure.ALREADY_EXISTS, email)
            return self._issue(identity)

    def sign_in(self, email: str) -> SessionClaim:
        """
        Issue a fresh claim for an existing identity.

        Raises:
            NotFoundError: If no identity has this email
        """
        with self.store.lock:
            identity = self.directory.get_by_email(email)
            if identity is None:
                logger.warning(f"Sign-in failed: {email} not found")
                raise NotFoundError("identity", email)

            identity.last_login_at = self.clock()
            self.directory.save(identity)
            claim = self._issue(identity)

        logger.info(f"Identity signed in: {identity.email}")
        return claim

    def sign_out(self, claim: Union[SessionClaim, str]) -> bool:
        """
        Revoke a claim.

        Returns:
            True if a live session was revoked
        """
        token = claim.token if isinstance(claim, SessionClaim) else claim
        try:
            payload = self.codec.verify(token)
        except AuthError:
            return False
        return self.directory.delete_session(payload.jti)

    # ========================================================================
    # Claim validation
    # ========================================================================

    def authenticate(self, claim: Union[SessionClaim, str]) -> Identity:
        """
        Validate a claim and load the identity it refers to.

        The returned identity comes from the identity table, never from the
        snapshot embedded in the claim.

        Args:
            claim: SessionClaim or its raw token

        Returns:
            Current stored Identity

        Raises:
            AuthError: EXPIRED if expired, revoked or superseded by a newer
                claim; MALFORMED if unsigned, tampered or for an unknown identity
        """
        token = claim.token if isinstance(claim, SessionClaim) else claim
        if not isinstance(token, str) or not token:
            raise AuthError(AuthFailure.MALFORMED, "empty claim")

        payload = self.codec.verify(token)

        session = self.directory.get_session(payload.jti)
        if session is None:
            logger.warning(f"Claim {payload.jti[:8]} was revoked or superseded")
            raise AuthError(AuthFailure.EXPIRED, "revoked or superseded")

        identity = self.directory.get_by_id(payload.identity_id)
        if identity is None or session.identity_id != identity.id:
            logger.warning(f"Claim refers to unknown identity {payload.identity_id}")
            raise AuthError(AuthFailure.MALFORMED, "unknown identity")

        self.directory.touch_session(payload.jti)
        logger.success(f"Identity authenticated: {identity.email} ({identity.id})")
        return identity

    def cleanup_expired_sessions(self) -> int:
        return self.directory.cleanup_expired_sessions()

    # ========================================================================
    # Identity mutations
    # ========================================================================

    def update_profile(self, identity: Identity, patch: Dict[str, Any]) -> SessionClaim:
        """
        Merge a profile patch into the stored identity and re-issue the claim.

        Args:
            identity: Identity being updated
            patch: Field -> new value; only profile fields are accepted

        Returns:
            New SessionClaim; earlier claims of this identity stop authenticating

        Raises:
            ValidationError: If the patch touches a non-profile field or
                blanks the display name
            NotFoundError: If the identity no longer exists
        """
        for key in patch:
            if key not in PROFILE_FIELDS:
                raise ValidationError(key, "is not a profile field")
        if "display_name" in patch and not str(patch["display_name"] or "").strip():
            raise ValidationError("display_name", "must not be empty")

        with self.store.lock:
            stored = self._load(identity.id)
            for key, value in patch.items():
                if key == "display_name":
                    value = str(value).strip()
                setattr(stored, key, value)
            self.directory.save(stored)
            claim = self._reissue(stored)

        logger.info(f"Profile updated: {stored.email}")
        return claim

    def record_progress(
        self,
        identity: Identity,
        classifications_count: int,
        achievements: List[str],
        certificate_eligible: bool,
    ) -> SessionClaim:
        """
        Store refreshed derived counters and re-issue the claim.

        Returns:
            New SessionClaim
        """
        with self.store.lock:
            stored = self._load(identity.id)
            stored.classifications_count = classifications_count
            stored.achievements = list(achievements)
            stored.certificate_eligible = certificate_eligible
            self.directory.save(stored)
            return self._reissue(stored)

    def reset_owned_data(self, actor: Identity, target_id: Optional[str] = None) -> Optional[SessionClaim]:
        """
        Delete every record owned by an identity and zero its counters.

        Members may only reset themselves. Admins may name another identity;
        that identity's sessions are revoked so it must sign in again.

        Args:
            actor: Identity requesting the reset
            target_id: Identity to reset (defaults to the actor)

        Returns:
            The actor's new claim when resetting themselves, None otherwise

        Raises:
            PermissionDeniedError: If a member targets another identity
            NotFoundError: If the target does not exist
        """
        target_id = target_id or actor.id
        if target_id != actor.id:
            self.guard.require_permission(actor, Permission.RESET_ANY_TENANT)

        with self.store.lock:
            target = self._load(target_id)
            purged = sum(record_store.purge_owner(target.id) for record_store in self.record_stores)

            target.classifications_count = 0
            target.achievements = []
            target.certificate_eligible = False
            self.directory.save(target)

            if target.id == actor.id:
                claim = self._reissue(target)
            else:
                self.directory.revoke_sessions(target.id)
                claim = None

        logger.info(f"Reset data for identity {target.id}: {purged} records deleted by {actor.id}")
        return claim

    # ========================================================================
    # Helpers
    # ========================================================================

    def _load(self, identity_id: str) -> Identity:
        identity = self.directory.get_by_id(identity_id)
        if identity is None:
            raise NotFoundError("identity", identity_id)
        return identity

    def _issue(self, identity: Identity) -> SessionClaim:
        claim = self.codec.issue(identity)
        self.directory.add_session(SessionRecord(
            jti=claim.jti,
            identity_id=identity.id,
            created_at=claim.issued_at,
            expires_at=claim.expires_at,
            last_activity=claim.issued_at,
        ))
        return claim

    def _reissue(self, identity: Identity) -> SessionClaim:
        # Older claims carry a stale snapshot; only the new one stays valid
        self.directory.revoke_sessions(identity.id)
        return self._issue(identity)
