"""
Classification statistics.

Every call recomputes from the actor's currently visible records; nothing
is cached.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..auth.models import Identity
from ..config import Settings, get_settings
from .classifications import ClassificationStore
from .models import ClassificationRecord


@dataclass(frozen=True)
class Achievement:
    """
    A dashboard badge.

    Attributes:
        id: Stable badge identifier
        name: Display name
        threshold: Classifications needed to unlock
        progress: min(total, threshold)
        unlocked: Whether the threshold is reached
    """
    id: str
    name: str
    threshold: int
    progress: int
    unlocked: bool


# (id, name, threshold)
ACHIEVEMENT_TIERS = (
    ("newbie", "Eco Newbie", 1),
    ("warrior", "Eco Warrior", 10),
    ("hero", "Eco Hero", 25),
)


@dataclass(frozen=True)
class ClassificationStats:
    """
    Aggregates over a set of classification records.

    Attributes:
        total: Number of records
        hazardous_count: Records with at least one hazardous material
        category_histogram: Category -> record count
        recent_activity: Most recently created records, newest first
    """
    total: int
    hazardous_count: int
    category_histogram: Dict[str, int] = field(default_factory=dict)
    recent_activity: List[ClassificationRecord] = field(default_factory=list)


def compute_stats(records: Sequence[ClassificationRecord], recent_limit: int = 5) -> ClassificationStats:
    """
    Aggregate a record set.

    Args:
        records: Records to aggregate, in any order
        recent_limit: Size of ``recent_activity``

    Returns:
        ClassificationStats
    """
    histogram: Dict[str, int] = {}
    for record in records:
        histogram[record.category] = histogram.get(record.category, 0) + 1

    newest_first = sorted(records, key=lambda r: (r.created_at, r.sequence), reverse=True)

    return ClassificationStats(
        total=len(records),
        hazardous_count=sum(1 for record in records if record.is_hazardous),
        category_histogram=histogram,
        recent_activity=newest_first[:max(recent_limit, 0)],
    )


def achievements(total: int) -> List[Achievement]:
    return [
        Achievement(
            id=badge_id,
            name=name,
            threshold=threshold,
            progress=min(total, threshold),
            unlocked=total >= threshold,
        )
        for badge_id, name, threshold in ACHIEVEMENT_TIERS
    ]


def certificate_eligible(total: int, threshold: int = 10) -> bool:
    return total >= threshold


class StatsAggregator:
    """Read-only statistics over a classification store."""

    def __init__(self, classifications: ClassificationStore, settings: Optional[Settings] = None):
        self.classifications = classifications
        self.settings = settings or get_settings()

    def stats_for(self, actor: Identity) -> ClassificationStats:
        """Stats over everything ``actor`` can list (own records, or all for admins)."""
        return compute_stats(
            self.classifications.list(actor),
            recent_limit=self.settings.recent_activity_limit,
        )

    def unlocked_achievements(self, actor: Identity) -> List[str]:
        total = self.stats_for(actor).total
        return [badge.id for badge in achievements(total) if badge.unlocked]

    def is_certificate_eligible(self, actor: Identity) -> bool:
        return certificate_eligible(self.stats_for(actor).total, self.settings.certificate_threshold)
