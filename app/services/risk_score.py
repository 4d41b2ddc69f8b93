"""Severity counts and the 0-100 aggregate risk score for a scan."""

from collections.abc import Iterable, Sequence
from typing import assert_never

from pydantic import BaseModel, Field

from app.schemas.dependencies import DependencyRiskResult
from app.schemas.findings import CodeFinding, DependencyFinding, SeverityLevel

MAX_RISK_SCORE = 100

# Dependency-risk contributions.
DEPRECATED_POINTS = 3
HAS_VULNERABILITIES_POINTS = 5
SUSPICIOUS_POINTS = 5
SUSPICIOUS_SCORE_THRESHOLD = 50
HIGH_LICENSE_RISK_POINTS = 2


class SeverityCounts(BaseModel):
    """Summary tally; LOW and INFO share the low bucket."""

    total_vulnerabilities: int = Field(default=0, ge=0)
    critical_count: int = Field(default=0, ge=0)
    high_count: int = Field(default=0, ge=0)
    medium_count: int = Field(default=0, ge=0)
    low_count: int = Field(default=0, ge=0)


def severity_weight(severity: SeverityLevel) -> int:
    if severity == "CRITICAL":
        return 10
    if severity == "HIGH":
        return 5
    if severity == "MEDIUM":
        return 2
    if severity == "LOW":
        return 1
    if severity == "INFO":
        return 0
    assert_never(severity)


def count_by_severity(findings: Sequence[DependencyFinding | CodeFinding]) -> SeverityCounts:
    counts = SeverityCounts(total_vulnerabilities=len(findings))
    for finding in findings:
        severity = finding.severity
        if severity == "CRITICAL":
            counts.critical_count += 1
        elif severity == "HIGH":
            counts.high_count += 1
        elif severity == "MEDIUM":
            counts.medium_count += 1
        elif severity == "LOW" or severity == "INFO":
            counts.low_count += 1
        else:
            assert_never(severity)
    return counts


def dependency_risk_points(risk: DependencyRiskResult) -> int:
    points = 0
    if risk.is_deprecated:
        points += DEPRECATED_POINTS
    if risk.has_vulnerabilities:
        points += HAS_VULNERABILITIES_POINTS
    if risk.suspicious_score > SUSPICIOUS_SCORE_THRESHOLD:
        points += SUSPICIOUS_POINTS
    if risk.license_risk == "HIGH":
        points += HIGH_LICENSE_RISK_POINTS
    return points


def calculate_risk_score(
    findings: Iterable[DependencyFinding | CodeFinding],
    risks: Iterable[DependencyRiskResult],
) -> int:
    """Additive score clamped to [0, 100]; never decreases as findings are added."""
    score = sum(severity_weight(f.severity) for f in findings)
    score += sum(dependency_risk_points(r) for r in risks)
    return max(0, min(score, MAX_RISK_SCORE))
