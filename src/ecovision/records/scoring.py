"""
Reusability scoring.

The score is a pure function of the category and the number of distinct
hazardous materials. The record store recomputes it on every create.
"""

from enum import Enum
from typing import Iterable, Tuple

BASE_SCORE = 70
HAZARD_PENALTY = 15

# (category keywords, adjustment); every matching row applies
CATEGORY_ADJUSTMENTS: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("battery",), -30),
    (("cable", "accessory"), 20),
    (("phone", "computer"), 10),
)


class ReusabilityLabel(str, Enum):
    HIGHLY_REUSABLE = "HighlyReusable"
    MODERATE = "Moderate"
    NON_REUSABLE = "NonReusable"


def compute_reusability_score(category: str, hazardous_materials: Iterable[str]) -> int:
    """
    Score how salvageable an item is, from 0 to 100.

    Args:
        category: Item category; keywords match case-insensitively as substrings
        hazardous_materials: Hazardous materials found; duplicates count once

    Returns:
        int: Clamped score
    """
    score = BASE_SCORE - HAZARD_PENALTY * len(set(hazardous_materials))

    lowered = (category or "").lower()
    for keywords, adjustment in CATEGORY_ADJUSTMENTS:
        if any(keyword in lowered for keyword in keywords):
            score += adjustment

    return max(0, min(100, score))


def reusability_label(score: int) -> ReusabilityLabel:
    if score >= 70:
        return ReusabilityLabel.HIGHLY_REUSABLE
    if score >= 40:
        return ReusabilityLabel.MODERATE
    return ReusabilityLabel.NON_REUSABLE
