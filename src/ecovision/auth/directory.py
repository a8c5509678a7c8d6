"""
Identity and session directory.

Thread-safe access to the global identity list and the session list on top
of a KeyValueStore.
"""

from typing import List, Optional

from loguru import logger

from ..clock import Clock, utc_now
from ..storage import KeyValueStore
from .models import Identity, SessionRecord

IDENTITIES_KEY = "identities"
SESSIONS_KEY = "sessions"


class IdentityDirectory:
    """
    Identity and session directory.

    Every write rewrites the whole list under the store lock, so a single
    call is atomic.
    """

    def __init__(self, store: KeyValueStore, clock: Clock = utc_now):
        """
        Initialize directory.

        Args:
            store: Key-value backend
            clock: Source of the current time
        """
        self.store = store
        self.clock = clock

    # ========================================================================
    # Identity Operations
    # ========================================================================

    def list_identities(self) -> List[Identity]:
        return [Identity.from_dict(row) for row in self.store.get(IDENTITIES_KEY)]

    def get_by_id(self, identity_id: str) -> Optional[Identity]:
        """
        Get identity by ID.

        Args:
            identity_id: Identity ID to search for

        Returns:
            Identity if found, None otherwise
        """
        for identity in self.list_identities():
            if identity.id == identity_id:
                return identity
        return None

    def get_by_email(self, email: str) -> Optional[Identity]:
        """
        Get identity by email (case-insensitive).

        Args:
            email: Email to search for

        Returns:
            Identity if found, None otherwise
        """
        email = email.strip().lower()
        for identity in self.list_identities():
            if identity.email == email:
                return identity
        return None

    def add(self, identity: Identity) -> bool:
        """
        Add a new identity.

        Returns:
            False if the email is already registered, True otherwise
        """
        with self.store.lock:
            rows = self.store.get(IDENTITIES_KEY)
            if any(row["email"] == identity.email for row in rows):
                return False
            rows.append(identity.to_dict())
            self.store.put(IDENTITIES_KEY, rows)

        logger.info(f"Identity created: {identity.email} ({identity.id}) with role: {identity.role.value}")
        return True

    def save(self, identity: Identity) -> bool:
        """
        Replace a stored identity.

        Returns:
            True if the identity existed and was replaced
        """
        with self.store.lock:
            rows = self.store.get(IDENTITIES_KEY)
            for index, row in enumerate(rows):
                if row["id"] == identity.id:
                    rows[index] = identity.to_dict()
                    self.store.put(IDENTITIES_KEY, rows)
                    return True
        return False

    # ========================================================================
    # Session Operations
    # ========================================================================

    def add_session(self, session: SessionRecord) -> None:
        with self.store.lock:
            rows = self.store.get(SESSIONS_KEY)
            rows.append(session.to_dict())
            self.store.put(SESSIONS_KEY, rows)

    def get_session(self, jti: str) -> Optional[SessionRecord]:
        """
        Get session by claim ID.

        Args:
            jti: Claim ID

        Returns:
            SessionRecord if found, None otherwise
        """
        for row in self.store.get(SESSIONS_KEY):
            if row["jti"] == jti:
                return SessionRecord.from_dict(row)
        return None

    def touch_session(self, jti: str) -> None:
        """Refresh a session's last activity timestamp."""
        with self.store.lock:
            rows = self.store.get(SESSIONS_KEY)
            for row in rows:
                if row["jti"] == jti:
                    row["last_activity"] = self.clock().isoformat()
                    self.store.put(SESSIONS_KEY, rows)
                    return

    def delete_session(self, jti: str) -> bool:
        """
        Delete session (sign out).

        Args:
            jti: Claim ID

        Returns:
            True if a session was deleted
        """
        with self.store.lock:
            rows = self.store.get(SESSIONS_KEY)
            kept = [row for row in rows if row["jti"] != jti]
            if len(kept) == len(rows):
                return False
            self.store.put(SESSIONS_KEY, kept)
            return True

    def revoke_sessions(self, identity_id: str) -> int:
        """
        Delete every session of an identity.

        Returns:
            Number of sessions deleted
        """
        with self.store.lock:
            rows = self.store.get(SESSIONS_KEY)
            kept = [row for row in rows if row["identity_id"] != identity_id]
            revoked = len(rows) - len(kept)
            if revoked:
                self.store.put(SESSIONS_KEY, kept)

        if revoked:
            logger.debug(f"Revoked {revoked} sessions for identity {identity_id}")
        return revoked

    def cleanup_expired_sessions(self) -> int:
        """
        Remove expired sessions.

        Returns:
            Number of sessions deleted
        """
        with self.store.lock:
            now = self.clock()
            rows = self.store.get(SESSIONS_KEY)
            kept = [row for row in rows if SessionRecord.from_dict(row).expires_at >= now]
            deleted = len(rows) - len(kept)
            if deleted:
                self.store.put(SESSIONS_KEY, kept)

        if deleted > 0:
            logger.info(f"Cleaned up {deleted} expired sessions")

        return deleted
