"""
Record stores for EcoVision.

Classification results and reports, each scoped per owning identity.
"""

from .content import (
    AnalysisContent,
    ClassificationContent,
    SummaryContent,
    UploadedContent,
)
from .models import (
    ClassificationDraft,
    ClassificationRecord,
    Location,
    Report,
    ReportDraft,
    ReportStatus,
    ReportType,
    SafetyLevel,
)
from .scoring import ReusabilityLabel, compute_reusability_score, reusability_label
from .store import RecordStore
from .classifications import ClassificationStore
from .reports import ReportStore
from .stats import (
    Achievement,
    ClassificationStats,
    StatsAggregator,
    achievements,
    certificate_eligible,
    compute_stats,
)

__all__ = [
    # Content variants
    "AnalysisContent",
    "ClassificationContent",
    "SummaryContent",
    "UploadedContent",
    # Models
    "ClassificationDraft",
    "ClassificationRecord",
    "Location",
    "Report",
    "ReportDraft",
    "ReportStatus",
    "ReportType",
    "SafetyLevel",
    # Scoring
    "ReusabilityLabel",
    "compute_reusability_score",
    "reusability_label",
    # Stores
    "RecordStore",
    "ClassificationStore",
    "ReportStore",
    # Stats
    "Achievement",
    "ClassificationStats",
    "StatsAggregator",
    "achievements",
    "certificate_eligible",
    "compute_stats",
]
