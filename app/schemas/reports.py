"""Pydantic request/response schemas for security reports and scan triggers."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.findings import SeverityLevel, VulnerabilityType

ReportStatus = Literal["PENDING", "SCANNING", "COMPLETED", "FAILED"]


class VulnerabilityOut(BaseModel):
    """Persisted finding as returned by the API."""

    model_config = {"from_attributes": True}

    id: int
    security_report_id: int
    type: VulnerabilityType
    severity: SeverityLevel
    title: str
    description: str
    file_path: str | None = None
    line_number: int | None = None
    code_snippet: str | None = None
    cve_id: str | None = None
    cvss_score: float | None = None
    package_name: str | None = None
    package_version: str | None = None
    fixed_version: str | None = None
    owasp_category: str | None = None
    cwe_id: str | None = None
    resolved: bool = False


class DependencyRiskOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    security_report_id: int
    package_name: str
    package_version: str
    package_manager: str
    is_deprecated: bool
    has_vulnerabilities: bool
    license: str | None = None
    license_risk: SeverityLevel
    direct_dependency: bool
    dependency_depth: int
    suspicious_score: int
    risk_level: SeverityLevel


class RecommendationOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    security_report_id: int
    severity: SeverityLevel
    category: str
    title: str
    description: str
    steps: list[str] = Field(default_factory=list)
    related_vulnerability_ids: list[int] = Field(default_factory=list)
    estimated_effort: str | None = None
    priority: int
    implemented: bool = False


class ReportBase(BaseModel):
    """Report header fields shared by the summary and detail views."""

    model_config = {"from_attributes": True}

    id: int
    repo_id: int
    commit_sha: str
    status: ReportStatus
    risk_score: int = Field(ge=0, le=100)
    total_vulnerabilities: int
    critical_count: int
    high_count: int
    medium_count: int
    low_count: int
    scan_date: datetime | None = None
    scan_duration: int | None = Field(default=None, description="Milliseconds")
    error_message: str | None = None


class ReportDetail(ReportBase):
    """Full report with findings sorted CRITICAL first, risks by level, recommendations by priority."""

    vulnerabilities: list[VulnerabilityOut] = Field(default_factory=list)
    dependency_risks: list[DependencyRiskOut] = Field(default_factory=list)
    recommendations: list[RecommendationOut] = Field(default_factory=list)


class ReportSummary(ReportBase):
    """Report header plus repository name and child counts, for project listings."""

    repo_name: str
    vulnerability_count: int = 0
    dependency_risk_count: int = 0
    recommendation_count: int = 0


class ProjectSecuritySummary(BaseModel):
    """Aggregate over the latest report of each repository in a project."""

    project_id: str
    total_repositories: int = 0
    scanned_repositories: int = 0
    total_vulnerabilities: int = Field(
        default=0,
        description="Unresolved vulnerabilities across the latest reports.",
    )
    critical_count: int = 0
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0
    average_risk_score: int = 0
    high_risk_repositories: int = Field(
        default=0,
        description="Repositories whose latest risk score is 50 or more.",
    )


class VulnerabilityUpdate(BaseModel):
    resolved: bool


class RecommendationUpdate(BaseModel):
    implemented: bool


class ScanRequest(BaseModel):
    """Request body for triggering a scan of an already-fetched snapshot."""

    snapshot_path: str = Field(..., min_length=1, max_length=4096)
    commit_sha: str = Field(..., min_length=1, max_length=255)


class ScanAccepted(BaseModel):
    """Response for an accepted scan; poll the report for its final status."""

    report_id: int
    repo_id: int
    status: ReportStatus = "PENDING"
