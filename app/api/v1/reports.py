"""Security report endpoints: latest per repository, detail, and project-level views."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.schemas.reports import ProjectSecuritySummary, ReportDetail, ReportSummary
from app.services.reports import (
    get_latest_report,
    get_project_security_summary,
    get_report,
    list_project_reports,
)

router = APIRouter()


@router.get("/repos/{repo_id}/reports/latest", response_model=ReportDetail)
def get_latest_repo_report(
    repo_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ReportDetail:
    """
    Return the most recent report for a repository, whatever its status.

    Vulnerabilities are sorted CRITICAL first, dependency risks by risk level,
    and recommendations by priority (highest first).
    """
    report = get_latest_report(db, repo_id)
    if report is None:
        raise HTTPException(status_code=404, detail="No security report found for this repository.")
    return report


@router.get("/reports/{report_id}", response_model=ReportDetail)
def get_report_detail(
    report_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ReportDetail:
    report = get_report(db, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Security report not found.")
    return report


@router.get("/projects/{project_id}/reports", response_model=list[ReportSummary])
def get_project_reports(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> list[ReportSummary]:
    """All reports for the project's repositories, newest first, with child counts."""
    return list_project_reports(db, project_id)


@router.get("/projects/{project_id}/security-summary", response_model=ProjectSecuritySummary)
def get_project_summary(
    project_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ProjectSecuritySummary:
    """
    Aggregate the latest report of every repository in the project.

    total_vulnerabilities counts unresolved findings only; high_risk_repositories
    counts repositories whose latest risk score is 50 or more.
    """
    return get_project_security_summary(db, project_id)
