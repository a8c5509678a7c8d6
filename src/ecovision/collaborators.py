"""
External collaborators: image classifier, report exporter, locator.

The core only depends on the protocols below. ``call_with_timeout`` turns a
slow collaborator into a retryable CollaboratorTimeout.
"""

import csv
import io
import itertools
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol, Sequence, TypeVar

from loguru import logger

from .errors import CollaboratorTimeout, ValidationError
from .records.models import ClassificationDraft, Location, Report

T = TypeVar("T")

EXPORT_FORMATS = ("pdf", "csv", "slides")


@dataclass
class ClassificationOutcome:
    """What a classifier reports about one image."""
    item_name: str
    category: str
    hazardous_materials: List[str] = field(default_factory=list)
    confidence: float = 0.0
    safety_level: str = "low"
    recommendations: List[str] = field(default_factory=list)

    def to_draft(self, location: Optional[Location] = None, image_url: Optional[str] = None) -> ClassificationDraft:
        return ClassificationDraft(
            item_name=self.item_name,
            category=self.category,
            hazardous_materials=tuple(self.hazardous_materials),
            confidence=self.confidence,
            safety_level=self.safety_level,
            recommendations=tuple(self.recommendations),
            location=location,
            image_url=image_url,
        )


class Classifier(Protocol):
    def classify(self, image: bytes) -> ClassificationOutcome:
        ...


class Exporter(Protocol):
    def export(self, report: Report, fmt: str) -> bytes:
        ...


class Locator(Protocol):
    def locate(self) -> Location:
        ...


def call_with_timeout(name: str, func: Callable[..., T], timeout: float, *args: Any) -> T:
    """
    Run a collaborator call with a deadline.

    Args:
        name: Collaborator name for errors and logs
        func: Callable to run
        timeout: Seconds to wait
        *args: Arguments for ``func``

    Returns:
        Whatever ``func`` returns

    Raises:
        CollaboratorTimeout: If ``func`` does not finish in time, or raises
            CollaboratorTimeout itself
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"ecovision-{name}")
    try:
        future = executor.submit(func, *args)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout:
            logger.error(f"{name} timed out after {timeout:.1f}s")
            raise CollaboratorTimeout(name, timeout)
    finally:
        # Don't wait for a hung call; its result is discarded
        executor.shutdown(wait=False)


# Sample outcomes the dashboard's demo classifier picks from
SAMPLE_OUTCOMES = (
    ClassificationOutcome(
        item_name="Smartphone Battery",
        category="Mobile Device Battery",
        hazardous_materials=["Lithium", "Cobalt"],
        confidence=94.5,
        safety_level="high",
        recommendations=[
            "Do not puncture or disassemble",
            "Keep away from heat sources",
            "Dispose at certified battery recycling center",
            "Never throw in regular trash",
        ],
    ),
    ClassificationOutcome(
        item_name="LED Monitor",
        category="Display Device",
        hazardous_materials=["Mercury (trace amounts)", "Lead"],
        confidence=87.2,
        safety_level="medium",
        recommendations=[
            "Remove all cables before disposal",
            "Take to electronics recycling facility",
            "Check manufacturer take-back programs",
            "Do not break screen",
        ],
    ),
    ClassificationOutcome(
        item_name="USB Cable",
        category="Electronic Accessory",
        hazardous_materials=[],
        confidence=92.8,
        safety_level="low",
        recommendations=[
            "Can be recycled with other electronics",
            "Check if still functional for donation",
            "Remove from other devices before disposal",
        ],
    ),
)


class MockClassifier:
    """
    Deterministic stand-in classifier.

    Returns the given outcomes in a cycle, ignoring the image.
    """

    def __init__(self, outcomes: Sequence[ClassificationOutcome] = SAMPLE_OUTCOMES):
        if not outcomes:
            raise ValueError("MockClassifier needs at least one outcome")
        self._outcomes = itertools.cycle(outcomes)

    def classify(self, image: bytes) -> ClassificationOutcome:
        return next(self._outcomes)


class CsvExporter:
    """Exports report metadata as CSV. Other formats are not supported."""

    HEADER = ("Title", "Type", "Status", "Created", "Updated")

    def export(self, report: Report, fmt: str) -> bytes:
        if fmt != "csv":
            raise ValidationError("format", f"{fmt!r} export is not supported by CsvExporter")

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(self.HEADER)
        writer.writerow((
            report.title,
            report.type.value,
            report.status.value,
            report.created_at.isoformat(),
            report.updated_at.isoformat(),
        ))
        return buffer.getvalue().encode("utf-8")
