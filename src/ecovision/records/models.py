"""
Record data models.

Data classes for the two record kinds (classification results and reports)
and the drafts callers submit to create them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..clock import from_iso, to_iso
from ..errors import ValidationError
from .content import dump_content, parse_content
from .scoring import ReusabilityLabel


class SafetyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReportType(str, Enum):
    CLASSIFICATION = "classification"
    SUMMARY = "summary"
    ANALYSIS = "analysis"
    UPLOADED = "uploaded"


class ReportStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def unique(values: Iterable[str]) -> Tuple[str, ...]:
    """Drop duplicates, keeping first-seen order."""
    return tuple(dict.fromkeys(values))


def string_list(field_name: str, values: Any) -> Tuple[str, ...]:
    """
    Check that ``values`` is a sequence of strings.

    A bare string is rejected rather than split into characters.

    Raises:
        ValidationError: If ``values`` is a string, not iterable, or holds
            anything but strings
    """
    if isinstance(values, (str, bytes)):
        raise ValidationError(field_name, "must be a list of strings")
    try:
        items = tuple(values)
    except TypeError:
        raise ValidationError(field_name, "must be a list of strings")
    if not all(isinstance(item, str) for item in items):
        raise ValidationError(field_name, "must be a list of strings")
    return items


@dataclass(frozen=True)
class Location:
    """
    Where an item was classified.

    Attributes:
        latitude: Degrees north
        longitude: Degrees east
        city: Optional city name
        country: Optional country name
    """
    latitude: float
    longitude: float
    city: str = ""
    country: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "city": self.city,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Location"]:
        if data is None:
            return None
        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            city=data.get("city", ""),
            country=data.get("country", ""),
        )


@dataclass(frozen=True)
class ClassificationRecord:
    """
    A stored classification result. Immutable once created.

    Attributes:
        id: Unique record identifier
        owner_id: Identity that created the record
        item_name: Classified item
        category: Item category
        hazardous_materials: Distinct hazardous materials found
        confidence: Classifier confidence, 0-100
        safety_level: Handling risk
        reusability_score: Derived from category and hazardous materials
        reusability_label: Derived from reusability_score
        recommendations: Ordered handling recommendations
        timestamp: Creation time
        sequence: Store-wide insertion counter, breaks timestamp ties
        location: Where the item was classified, if known
        image_url: Reference to the classified image, if any
    """
    id: str
    owner_id: str
    item_name: str
    category: str
    hazardous_materials: Tuple[str, ...]
    confidence: float
    safety_level: SafetyLevel
    reusability_score: int
    reusability_label: ReusabilityLabel
    recommendations: Tuple[str, ...]
    timestamp: datetime
    sequence: int = 0
    location: Optional[Location] = None
    image_url: Optional[str] = None

    @property
    def created_at(self) -> datetime:
        return self.timestamp

    @property
    def is_hazardous(self) -> bool:
        return len(self.hazardous_materials) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "item_name": self.item_name,
            "category": self.category,
            "hazardous_materials": list(self.hazardous_materials),
            "confidence": self.confidence,
            "safety_level": self.safety_level.value,
            "reusability_score": self.reusability_score,
            "reusability_label": self.reusability_label.value,
            "recommendations": list(self.recommendations),
            "timestamp": to_iso(self.timestamp),
            "sequence": self.sequence,
            "location": self.location.to_dict() if self.location else None,
            "image_url": self.image_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationRecord":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            item_name=data["item_name"],
            category=data["category"],
            hazardous_materials=tuple(data.get("hazardous_materials", [])),
            confidence=float(data["confidence"]),
            safety_level=SafetyLevel(data["safety_level"]),
            reusability_score=int(data["reusability_score"]),
            reusability_label=ReusabilityLabel(data["reusability_label"]),
            recommendations=tuple(data.get("recommendations", [])),
            timestamp=from_iso(data["timestamp"]),
            sequence=data.get("sequence", 0),
            location=Location.from_dict(data.get("location")),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class Report:
    """
    A stored report.

    Attributes:
        id: Unique report identifier
        owner_id: Identity that created the report
        title: Non-empty title
        type: Report type; always equals the content variant's kind
        content: Typed content variant
        status: Processing status
        tags: Distinct tags
        is_public: Readable by every identity when True
        download_count: Confirmed exports
        created_at: Creation time
        updated_at: Last mutation time
        sequence: Store-wide insertion counter, breaks timestamp ties
        size: Human-readable size label
    """
    id: str
    owner_id: str
    title: str
    type: ReportType
    content: Any
    status: ReportStatus
    tags: Tuple[str, ...]
    is_public: bool
    download_count: int
    created_at: datetime
    updated_at: datetime
    sequence: int = 0
    size: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "type": self.type.value,
            "content": dump_content(self.content),
            "status": self.status.value,
            "tags": list(self.tags),
            "is_public": self.is_public,
            "download_count": self.download_count,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "sequence": self.sequence,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            title=data["title"],
            type=ReportType(data["type"]),
            content=parse_content(data["content"]),
            status=ReportStatus(data["status"]),
            tags=tuple(data.get("tags", [])),
            is_public=bool(data.get("is_public", False)),
            download_count=int(data.get("download_count", 0)),
            created_at=from_iso(data["created_at"]),
            updated_at=from_iso(data["updated_at"]),
            sequence=data.get("sequence", 0),
            size=data.get("size"),
        )


@dataclass
class ClassificationDraft:
    """
    Caller input for a new classification record.

    ``reusability_score`` and ``reusability_label`` are accepted so classifier
    payloads can be passed through unchanged; the store discards them and
    recomputes both.
    """
    item_name: str
    category: str
    hazardous_materials: Iterable[str] = ()
    confidence: float = 0.0
    safety_level: str = SafetyLevel.LOW.value
    recommendations: Iterable[str] = ()
    location: Optional[Location] = None
    image_url: Optional[str] = None
    reusability_score: Optional[int] = None
    reusability_label: Optional[str] = None


@dataclass
class ReportDraft:
    """Caller input for a new report."""
    title: str
    type: str
    content: Any
    status: str = ReportStatus.COMPLETED.value
    tags: Iterable[str] = field(default_factory=tuple)
    is_public: bool = False
    size: Optional[str] = None
