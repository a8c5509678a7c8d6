"""
Classification record store.
"""

import math
from datetime import datetime
from typing import Any, Dict

from ..auth.models import Identity
from ..errors import ValidationError
from .models import ClassificationDraft, ClassificationRecord, SafetyLevel, string_list, unique
from .scoring import compute_reusability_score, reusability_label
from .store import RecordStore


class ClassificationStore(RecordStore[ClassificationRecord]):
    """
    Store for classification results.

    The reusability score and label are always recomputed here; values on
    the draft are ignored.
    """

    kind = "classification"
    record_type = ClassificationRecord

    def _build(
        self,
        actor: Identity,
        draft: ClassificationDraft,
        record_id: str,
        now: datetime,
    ) -> ClassificationRecord:
        item_name = (draft.item_name or "").strip()
        category = (draft.category or "").strip()
        if not item_name:
            raise ValidationError("item_name", "must not be empty")
        if not category:
            raise ValidationError("category", "must not be empty")

        try:
            confidence = float(draft.confidence)
        except (TypeError, ValueError):
            raise ValidationError("confidence", "must be a number")
        if math.isnan(confidence) or not 0.0 <= confidence <= 100.0:
            raise ValidationError("confidence", "must be between 0 and 100")

        try:
            safety_level = SafetyLevel(draft.safety_level)
        except ValueError:
            raise ValidationError("safety_level", f"unknown level {draft.safety_level!r}")

        materials = string_list("hazardous_materials", draft.hazardous_materials)
        hazardous = unique(m.strip() for m in materials if m.strip())
        recommendations = string_list("recommendations", draft.recommendations)
        score = compute_reusability_score(category, hazardous)

        return ClassificationRecord(
            id=record_id,
            owner_id=actor.id,
            item_name=item_name,
            category=category,
            hazardous_materials=hazardous,
            confidence=confidence,
            safety_level=safety_level,
            reusability_score=score,
            reusability_label=reusability_label(score),
            recommendations=recommendations,
            timestamp=now,
            location=draft.location,
            image_url=draft.image_url,
        )

    def _apply_patch(
        self,
        record: ClassificationRecord,
        patch: Dict[str, Any],
        now: datetime,
    ) -> ClassificationRecord:
        raise ValidationError("record", "classification records cannot be modified, only deleted")
