"""
Report store.

Besides generic CRUD, reports can be uploaded, generated from a
classification record, and have their download counter bumped after a
confirmed export.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable

import pydantic
from loguru import logger

from ..auth.models import Identity
from ..auth.permissions import Operation
from ..errors import ValidationError
from .content import ClassificationContent, parse_content
from .models import (
    ClassificationRecord,
    Report,
    ReportDraft,
    ReportStatus,
    ReportType,
    string_list,
    unique,
)
from .store import RecordStore

# Fields update() accepts
PATCHABLE_FIELDS = frozenset({"title", "status", "tags", "is_public", "content", "size"})


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title", "must not be empty")
    return title.strip()


def _validate_status(status: Any) -> ReportStatus:
    try:
        return ReportStatus(status)
    except ValueError:
        raise ValidationError("status", f"unknown status {status!r}")


def _validate_content(report_type: ReportType, content: Any) -> Any:
    try:
        parsed = parse_content(content)
    except pydantic.ValidationError as e:
        raise ValidationError("content", str(e))
    if parsed.kind != report_type.value:
        raise ValidationError("content", f"{parsed.kind} content on a {report_type.value} report")
    return parsed


def _validate_is_public(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError("is_public", "must be a boolean")
    return value


def size_label(num_bytes: int) -> str:
    """Render a byte count the way the dashboard shows it."""
    return f"{num_bytes / 1024 / 1024:.2f} MB"


class ReportStore(RecordStore[Report]):
    """Store for reports."""

    kind = "report"
    record_type = Report

    def _build(self, actor: Identity, draft: ReportDraft, record_id: str, now: datetime) -> Report:
        title = _validate_title(draft.title)
        try:
            report_type = ReportType(draft.type)
        except ValueError:
            raise ValidationError("type", f"unknown report type {draft.type!r}")

        return Report(
            id=record_id,
            owner_id=actor.id,
            title=title,
            type=report_type,
            content=_validate_content(report_type, draft.content),
            status=_validate_status(draft.status),
            tags=unique(string_list("tags", draft.tags)),
            is_public=_validate_is_public(draft.is_public),
            download_count=0,
            created_at=now,
            updated_at=now,
            size=draft.size,
        )

    def _apply_patch(self, record: Report, patch: Dict[str, Any], now: datetime) -> Report:
        for key in patch:
            if key not in PATCHABLE_FIELDS:
                raise ValidationError(key, "cannot be changed")

        changes: Dict[str, Any] = {"updated_at": now}
        if "title" in patch:
            changes["title"] = _validate_title(patch["title"])
        if "status" in patch:
            changes["status"] = _validate_status(patch["status"])
        if "tags" in patch:
            changes["tags"] = unique(string_list("tags", patch["tags"]))
        if "is_public" in patch:
            changes["is_public"] = _validate_is_public(patch["is_public"])
        if "content" in patch:
            changes["content"] = _validate_content(record.type, patch["content"])
        if "size" in patch:
            changes["size"] = patch["size"]

        return replace(record, **changes)

    # ========================================================================
    # Report flows
    # ========================================================================

    def upload(
        self,
        actor: Identity,
        title: str,
        file_name: str,
        file_size: int,
        tags: Iterable[str] = (),
    ) -> Report:
        """
        Register an uploaded report file.

        Args:
            actor: Uploading identity
            title: Report title
            file_name: Original file name
            file_size: File size in bytes
            tags: Report tags

        Returns:
            The stored ``uploaded`` report (private, completed)
        """
        return self.create(actor, ReportDraft(
            title=title,
            type=ReportType.UPLOADED.value,
            content={"kind": "uploaded", "file_name": file_name, "file_size": file_size},
            status=ReportStatus.COMPLETED.value,
            tags=tuple(tags),
            is_public=False,
            size=size_label(file_size) if isinstance(file_size, int) and file_size >= 0 else None,
        ))

    def generate_for_classification(self, actor: Identity, record: ClassificationRecord) -> Report:
        """
        Create a private report summarising one classification record.

        Raises:
            PermissionDeniedError: If the actor may not read the record
        """
        self.guard.require(actor, record, Operation.READ)
        content = ClassificationContent(
            record_id=record.id,
            item_name=record.item_name,
            category=record.category,
            hazardous_materials=list(record.hazardous_materials),
            safety_level=record.safety_level.value,
            confidence=record.confidence,
            reusability_score=record.reusability_score,
            reusability_label=record.reusability_label.value,
            recommendations=list(record.recommendations),
        )
        return self.create(actor, ReportDraft(
            title=f"Classification Report - {record.item_name}",
            type=ReportType.CLASSIFICATION.value,
            content=content,
            status=ReportStatus.COMPLETED.value,
            tags=(record.category, record.safety_level.value),
        ))

    def record_download(self, actor: Identity, report_id: str) -> Report:
        """
        Count one confirmed export of a report.

        Any identity that may read the report may download it. The
        ``updated_at`` timestamp is left alone.

        Raises:
            NotFoundError: If the report does not exist
            PermissionDeniedError: If the actor may not read it
        """
        self._require_actor(actor)
        with self.store.lock:
            report = self._find(report_id)
            self._check(actor, report, Operation.READ)
            updated = replace(report, download_count=report.download_count + 1)
            self._replace(updated)

        logger.debug(f"report {report_id} downloaded by {actor.id} ({updated.download_count} total)")
        return updated

