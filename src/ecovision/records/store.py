"""
Generic per-tenant record store.

Records live in one list per (kind, owner) key. Every mutation validates
first and then rewrites a single key under the backend lock, so a failed
call never leaves a partial write behind.
"""

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from loguru import logger

from ..auth.models import Identity
from ..auth.permissions import AccessGuard, Operation, Permission
from ..clock import Clock, utc_now
from ..config import Settings, get_settings
from ..errors import AuthError, AuthFailure, NotFoundError, PermissionDeniedError
from ..storage import KeyValueStore

RecordT = TypeVar("RecordT")


class RecordStore(Generic[RecordT]):
    """
    CRUD over one record kind, scoped through the access guard.

    Subclasses set ``kind`` and ``record_type`` and implement ``_build`` and
    ``_apply_patch``.
    """

    kind: str = ""
    record_type: Any = None

    def __init__(
        self,
        store: KeyValueStore,
        guard: Optional[AccessGuard] = None,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize record store.

        Args:
            store: Key-value backend
            guard: Access guard consulted before every read and mutation
            settings: Store settings
            clock: Source of creation and update timestamps
        """
        self.store = store
        self.guard = guard or AccessGuard()
        self.settings = settings or get_settings()
        self.clock = clock

    # ========================================================================
    # CRUD
    # ========================================================================

    def create(self, actor: Optional[Identity], draft: Any) -> RecordT:
        """
        Validate a draft and persist it as a new record owned by the actor.

        Args:
            actor: Authenticated identity
            draft: Kind-specific draft

        Returns:
            The stored record

        Raises:
            AuthError: If no authenticated actor is given
            ValidationError: If the draft is invalid; nothing is stored
        """
        self._require_actor(actor)
        record = self._build(actor, draft, str(uuid.uuid4()), self.clock())

        with self.store.lock:
            record = replace(record, sequence=self._next_sequence())
            key = self._partition_key(actor.id)
            rows = self.store.get(key)
            rows.append(record.to_dict())
            self.store.put(key, rows)

        logger.info(f"{self.kind} {record.id} created by {actor.id}")
        return record

    def get(self, actor: Identity, record_id: str) -> RecordT:
        """
        Read a record the actor may see.

        Raises:
            NotFoundError: If the record does not exist
            PermissionDeniedError: If the actor may not read it
        """
        self._require_actor(actor)
        record = self._find(record_id)
        self._check(actor, record, Operation.READ)
        return record

    def update(self, actor: Identity, record_id: str, patch: Dict[str, Any]) -> RecordT:
        """
        Apply a patch to a record owned by the actor (or any record for admins).

        Raises:
            NotFoundError: If the record does not exist
            PermissionDeniedError: If the actor is neither owner nor admin
            ValidationError: If the patch is invalid; the record is unchanged
        """
        self._require_actor(actor)
        with self.store.lock:
            record = self._find(record_id)
            self._check(actor, record, Operation.UPDATE)
            updated = self._apply_patch(record, dict(patch), self.clock())
            self._replace(updated)

        logger.info(f"{self.kind} {record_id} updated by {actor.id}")
        return updated

    def delete(self, actor: Identity, record_id: str) -> None:
        """
        Delete a record owned by the actor (or any record for admins).

        Raises:
            NotFoundError: If the record does not exist
            PermissionDeniedError: If the actor is neither owner nor admin
        """
        self._require_actor(actor)
        with self.store.lock:
            record = self._find(record_id)
            self._check(actor, record, Operation.DELETE)

            key = self._partition_key(record.owner_id)
            rows = [row for row in self.store.get(key) if row["id"] != record_id]
            self._write_partition(key, rows)

        logger.info(f"{self.kind} {record_id} deleted by {actor.id}")

    def list(self, actor: Identity) -> List[RecordT]:
        """
        List the records visible to the actor, newest first.

        Members see their own records; roles holding VIEW_ALL_TENANTS (admins)
        see every tenant's. Records created at the same instant are ordered
        newest insertion first.
        """
        self._require_actor(actor)
        if self.guard.has_permission(actor.role, Permission.VIEW_ALL_TENANTS):
            records = self._all_records()
        else:
            records = self._load_partition(self._partition_key(actor.id))
        return sorted(records, key=self._order_key, reverse=True)

    def purge_owner(self, owner_id: str) -> int:
        """
        Delete every record of one owner.

        Returns:
            Number of records deleted
        """
        with self.store.lock:
            key = self._partition_key(owner_id)
            count = len(self.store.get(key))
            self.store.delete(key)

        if count:
            logger.info(f"Purged {count} {self.kind} records of {owner_id}")
        return count

    # ========================================================================
    # Kind-specific hooks
    # ========================================================================

    def _build(self, actor: Identity, draft: Any, record_id: str, now: datetime) -> RecordT:
        raise NotImplementedError

    def _apply_patch(self, record: RecordT, patch: Dict[str, Any], now: datetime) -> RecordT:
        raise NotImplementedError

    # ========================================================================
    # Helpers
    # ========================================================================

    def _require_actor(self, actor: Optional[Identity]) -> None:
        if actor is None or not getattr(actor, "id", None):
            raise AuthError(AuthFailure.MALFORMED, "an authenticated identity is required")

    def _check(self, actor: Identity, record: Any, operation: Operation) -> None:
        if self.guard.allow(actor, record, operation):
            return
        if self.settings.conceal_private_records and not self.guard.allow(actor, record, Operation.READ):
            raise NotFoundError(self.kind, record.id)
        logger.warning(f"Denied {operation.value} on {self.kind} {record.id} for {actor.id}")
        raise PermissionDeniedError(actor_id=actor.id, action=operation.value, resource_id=record.id)

    def _partition_key(self, owner_id: str) -> str:
        return f"{self.kind}:{owner_id}"

    def _load_partition(self, key: str) -> List[RecordT]:
        return [self.record_type.from_dict(row) for row in self.store.get(key)]

    def _write_partition(self, key: str, rows: List[Dict[str, Any]]) -> None:
        if rows:
            self.store.put(key, rows)
        else:
            self.store.delete(key)

    def _all_records(self) -> List[RecordT]:
        records: List[RecordT] = []
        for key in self.store.keys(prefix=f"{self.kind}:"):
            records.extend(self._load_partition(key))
        return records

    def _find(self, record_id: str) -> RecordT:
        for record in self._all_records():
            if record.id == record_id:
                return record
        raise NotFoundError(self.kind, record_id)

    def _replace(self, record: Any) -> None:
        key = self._partition_key(record.owner_id)
        rows = self.store.get(key)
        for index, row in enumerate(rows):
            if row["id"] == record.id:
                rows[index] = record.to_dict()
                self.store.put(key, rows)
                return
        raise NotFoundError(self.kind, record.id)

    def _next_sequence(self) -> int:
        key = f"sequence:{self.kind}"
        current = self.store.get(key, [0])[0] + 1
        self.store.put(key, [current])
        return current

    @staticmethod
    def _order_key(record: Any) -> Tuple[datetime, int]:
        return (record.created_at, record.sequence)
