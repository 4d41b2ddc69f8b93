"""Read side of security reports: latest/detail/project queries and reviewer toggles."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models import (
    DependencyRisk,
    Repository,
    SecurityRecommendation,
    SecurityReport,
    Vulnerability,
)
from app.schemas.findings import SEVERITY_ORDER, SEVERITY_RANK
from app.schemas.reports import (
    DependencyRiskOut,
    ProjectSecuritySummary,
    RecommendationOut,
    ReportBase,
    ReportDetail,
    ReportSummary,
    VulnerabilityOut,
)

logger = logging.getLogger(__name__)

HIGH_RISK_SCORE_THRESHOLD = 50


def _severity_rank(column):
    # Unknown values sort last.
    return case(SEVERITY_RANK, value=column, else_=len(SEVERITY_ORDER))


def _report_detail(session: Session, report: SecurityReport) -> ReportDetail:
    vulnerabilities = (
        session.query(Vulnerability)
        .filter(Vulnerability.security_report_id == report.id)
        .order_by(_severity_rank(Vulnerability.severity), Vulnerability.id)
        .all()
    )
    risks = (
        session.query(DependencyRisk)
        .filter(DependencyRisk.security_report_id == report.id)
        .order_by(_severity_rank(DependencyRisk.risk_level), DependencyRisk.package_name)
        .all()
    )
    recommendations = (
        session.query(SecurityRecommendation)
        .filter(SecurityRecommendation.security_report_id == report.id)
        .order_by(SecurityRecommendation.priority.desc(), SecurityRecommendation.id)
        .all()
    )
    return ReportDetail(
        **ReportBase.model_validate(report).model_dump(),
        vulnerabilities=[VulnerabilityOut.model_validate(v) for v in vulnerabilities],
        dependency_risks=[DependencyRiskOut.model_validate(r) for r in risks],
        recommendations=[RecommendationOut.model_validate(r) for r in recommendations],
    )


def _latest_report_row(session: Session, repo_id: int) -> SecurityReport | None:
    return (
        session.query(SecurityReport)
        .filter(SecurityReport.repo_id == repo_id)
        .order_by(SecurityReport.scan_date.desc(), SecurityReport.id.desc())
        .first()
    )


def get_latest_report(session: Session, repo_id: int) -> ReportDetail | None:
    """Most recent report for the repository with children sorted for display, or None."""
    report = _latest_report_row(session, repo_id)
    if report is None:
        return None
    return _report_detail(session, report)


def get_report(session: Session, report_id: int) -> ReportDetail | None:
    report = session.get(SecurityReport, report_id)
    if report is None:
        return None
    return _report_detail(session, report)


def list_project_reports(session: Session, project_id: str) -> list[ReportSummary]:
    """All reports of the project's repositories, newest first, with child counts."""
    vulnerability_count = (
        session.query(func.count(Vulnerability.id))
        .filter(Vulnerability.security_report_id == SecurityReport.id)
        .correlate(SecurityReport)
        .scalar_subquery()
    )
    risk_count = (
        session.query(func.count(DependencyRisk.id))
        .filter(DependencyRisk.security_report_id == SecurityReport.id)
        .correlate(SecurityReport)
        .scalar_subquery()
    )
    recommendation_count = (
        session.query(func.count(SecurityRecommendation.id))
        .filter(SecurityRecommendation.security_report_id == SecurityReport.id)
        .correlate(SecurityReport)
        .scalar_subquery()
    )
    rows = (
        session.query(
            SecurityReport,
            Repository.name,
            vulnerability_count,
            risk_count,
            recommendation_count,
        )
        .join(Repository, SecurityReport.repo_id == Repository.id)
        .filter(Repository.project_id == project_id)
        .order_by(SecurityReport.scan_date.desc(), SecurityReport.id.desc())
        .all()
    )
    summaries: list[ReportSummary] = []
    for report, repo_name, n_vulns, n_risks, n_recs in rows:
        summaries.append(
            ReportSummary(
                **ReportBase.model_validate(report).model_dump(),
                repo_name=repo_name,
                vulnerability_count=n_vulns or 0,
                dependency_risk_count=n_risks or 0,
                recommendation_count=n_recs or 0,
            )
        )
    return summaries


def average_risk_score(scores: list[int]) -> int:
    """Mean of the scores rounded half up (2.5 -> 3); 0 for no scores."""
    if not scores:
        return 0
    mean = Decimal(sum(scores)) / Decimal(len(scores))
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def get_project_security_summary(session: Session, project_id: str) -> ProjectSecuritySummary:
    """
    Aggregate the latest report of each repository in the project.

    Repositories without any report count toward total_repositories only.
    """
    repositories = (
        session.query(Repository)
        .filter(Repository.project_id == project_id)
        .order_by(Repository.id)
        .all()
    )
    latest = [
        report
        for report in (_latest_report_row(session, repo.id) for repo in repositories)
        if report is not None
    ]
    latest_ids = [r.id for r in latest]

    unresolved = 0
    if latest_ids:
        unresolved = (
            session.query(func.count(Vulnerability.id))
            .filter(
                Vulnerability.security_report_id.in_(latest_ids),
                Vulnerability.resolved.is_(False),
            )
            .scalar()
        ) or 0

    average = average_risk_score([r.risk_score for r in latest])
    return ProjectSecuritySummary(
        project_id=project_id,
        total_repositories=len(repositories),
        scanned_repositories=len(latest),
        total_vulnerabilities=unresolved,
        critical_count=sum(r.critical_count for r in latest),
        high_count=sum(r.high_count for r in latest),
        medium_count=sum(r.medium_count for r in latest),
        low_count=sum(r.low_count for r in latest),
        average_risk_score=average,
        high_risk_repositories=sum(
            1 for r in latest if r.risk_score >= HIGH_RISK_SCORE_THRESHOLD
        ),
    )


def get_vulnerability(session: Session, vulnerability_id: int) -> Vulnerability | None:
    return session.get(Vulnerability, vulnerability_id)


def set_vulnerability_resolved(
    session: Session, vulnerability_id: int, resolved: bool
) -> Vulnerability | None:
    """Change only the resolved flag; returns None when the finding does not exist."""
    vulnerability = session.get(Vulnerability, vulnerability_id)
    if vulnerability is None:
        return None
    vulnerability.resolved = resolved
    session.commit()
    session.refresh(vulnerability)
    logger.info(
        "Vulnerability resolution updated",
        extra={"vulnerability_id": vulnerability_id, "resolved": resolved},
    )
    return vulnerability


def set_recommendation_implemented(
    session: Session, recommendation_id: int, implemented: bool
) -> SecurityRecommendation | None:
    """Change only the implemented flag; returns None when the recommendation does not exist."""
    recommendation = session.get(SecurityRecommendation, recommendation_id)
    if recommendation is None:
        return None
    recommendation.implemented = implemented
    session.commit()
    session.refresh(recommendation)
    logger.info(
        "Recommendation status updated",
        extra={"recommendation_id": recommendation_id, "implemented": implemented},
    )
    return recommendation
