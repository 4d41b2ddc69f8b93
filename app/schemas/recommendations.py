"""Pydantic schema for remediation recommendations synthesized at the end of a scan."""

from pydantic import BaseModel, Field

from app.schemas.findings import SeverityLevel


class RecommendationDraft(BaseModel):
    """A recommendation before persistence; one per matched condition, not per finding."""

    severity: SeverityLevel
    category: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    steps: list[str] = Field(default_factory=list)
    related_vulnerability_ids: list[int] = Field(
        default_factory=list,
        description="Ids of persisted findings this recommendation addresses.",
    )
    estimated_effort: str | None = None
    priority: int = Field(..., ge=1, le=10)
