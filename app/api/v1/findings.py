"""Single-finding lookup and reviewer toggles (resolved / implemented)."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.reports import (
    RecommendationOut,
    RecommendationUpdate,
    VulnerabilityOut,
    VulnerabilityUpdate,
)
from app.services.reports import (
    get_vulnerability,
    set_recommendation_implemented,
    set_vulnerability_resolved,
)

router = APIRouter()


@router.get("/vulnerabilities/{vulnerability_id}", response_model=VulnerabilityOut)
def get_vulnerability_by_id(
    vulnerability_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> VulnerabilityOut:
    """Return one finding; security_report_id points at its report."""
    vulnerability = get_vulnerability(db, vulnerability_id)
    if vulnerability is None:
        raise HTTPException(status_code=404, detail="Vulnerability not found.")
    return VulnerabilityOut.model_validate(vulnerability)


@router.patch("/vulnerabilities/{vulnerability_id}", response_model=VulnerabilityOut)
def patch_vulnerability(
    vulnerability_id: int,
    body: VulnerabilityUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> VulnerabilityOut:
    """Set resolved; no other field of the finding changes."""
    vulnerability = set_vulnerability_resolved(db, vulnerability_id, body.resolved)
    if vulnerability is None:
        raise HTTPException(status_code=404, detail="Vulnerability not found.")
    return VulnerabilityOut.model_validate(vulnerability)


@router.patch("/recommendations/{recommendation_id}", response_model=RecommendationOut)
def patch_recommendation(
    recommendation_id: int,
    body: RecommendationUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> RecommendationOut:
    """Set implemented; no other field of the recommendation changes."""
    recommendation = set_recommendation_implemented(db, recommendation_id, body.implemented)
    if recommendation is None:
        raise HTTPException(status_code=404, detail="Recommendation not found.")
    return RecommendationOut.model_validate(recommendation)
