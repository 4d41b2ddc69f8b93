"""Pydantic request/response schemas."""

from app.schemas.dependencies import DeclaredDependency, DependencyRiskResult, PackageManager
from app.schemas.findings import (
    CodeFinding,
    DependencyFinding,
    SeverityLevel,
    VulnerabilityType,
)
from app.schemas.health import HealthResponse
from app.schemas.recommendations import RecommendationDraft
from app.schemas.reports import (
    DependencyRiskOut,
    ProjectSecuritySummary,
    RecommendationOut,
    RecommendationUpdate,
    ReportDetail,
    ReportSummary,
    ScanAccepted,
    ScanRequest,
    VulnerabilityOut,
    VulnerabilityUpdate,
)
from app.schemas.threat_intel import KnownVulnerability, SupplyChainData, ThreatIntel

__all__ = [
    "CodeFinding",
    "DeclaredDependency",
    "DependencyFinding",
    "DependencyRiskOut",
    "DependencyRiskResult",
    "HealthResponse",
    "KnownVulnerability",
    "PackageManager",
    "ProjectSecuritySummary",
    "RecommendationDraft",
    "RecommendationOut",
    "RecommendationUpdate",
    "ReportDetail",
    "ReportSummary",
    "ScanAccepted",
    "ScanRequest",
    "SeverityLevel",
    "SupplyChainData",
    "ThreatIntel",
    "VulnerabilityOut",
    "VulnerabilityType",
    "VulnerabilityUpdate",
]
