"""
Report content variants.

Report content is a tagged union keyed by ``kind``, which always equals the
owning report's type. Each variant has a fixed schema.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class ClassificationContent(BaseModel):
    """Snapshot of a classification result."""
    kind: Literal["classification"] = "classification"
    record_id: Optional[str] = None
    item_name: str
    category: str
    hazardous_materials: List[str] = Field(default_factory=list)
    safety_level: str
    confidence: float
    reusability_score: int
    reusability_label: str
    recommendations: List[str] = Field(default_factory=list)


class SummaryContent(BaseModel):
    kind: Literal["summary"] = "summary"
    text: str = ""
    highlights: List[str] = Field(default_factory=list)


class AnalysisContent(BaseModel):
    kind: Literal["analysis"] = "analysis"
    findings: List[str] = Field(default_factory=list)
    metrics: Dict[str, float] = Field(default_factory=dict)


class UploadedContent(BaseModel):
    """Metadata of an uploaded file."""
    kind: Literal["uploaded"] = "uploaded"
    file_name: str
    file_size: int = Field(ge=0)


ReportContent = Annotated[
    Union[ClassificationContent, SummaryContent, AnalysisContent, UploadedContent],
    Field(discriminator="kind"),
]

_content_adapter: TypeAdapter = TypeAdapter(ReportContent)


def parse_content(data: Any) -> Any:
    """
    Validate raw content into its variant.

    Accepts a variant instance or a dict carrying ``kind``.

    Raises:
        pydantic.ValidationError: If the payload does not match any variant
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return _content_adapter.validate_python(data)


def dump_content(content: Any) -> Dict[str, Any]:
    return _content_adapter.dump_python(content, mode="json")
