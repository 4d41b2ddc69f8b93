"""Synthesize remediation recommendations from findings and dependency risks.

One recommendation per matched condition (not per finding). Steps and effort
estimates are static per category.
"""

from collections import defaultdict
from collections.abc import Sequence
from typing import assert_never

from packaging.version import InvalidVersion, Version

from app.schemas.dependencies import DependencyRiskResult
from app.schemas.findings import (
    CodeFinding,
    CodeVulnerabilityType,
    DependencyFinding,
    SeverityLevel,
)
from app.schemas.recommendations import RecommendationDraft
from app.services.supply_chain import HIGH_RISK_SUSPICIOUS_THRESHOLD

CATEGORY_DEPENDENCY_UPDATE = "Dependency Update"
CATEGORY_SECURITY_CONFIGURATION = "Security Configuration"
CATEGORY_CODE_FIX = "Code Fix"
CATEGORY_DEPENDENCY_MAINTENANCE = "Dependency Maintenance"
CATEGORY_SUPPLY_CHAIN = "Supply Chain Security"

SECRETS_PRIORITY = 10
SQL_INJECTION_PRIORITY = 9
XSS_PRIORITY = 8
SUSPICIOUS_PACKAGES_PRIORITY = 7
DEPRECATED_PRIORITY = 5

DEPENDENCY_UPDATE_STEPS_TEMPLATE = (
    "Update {manifest} to use {package}@{fixed_version}",
    "Run your package manager's update command",
    "Test your application thoroughly after the update",
    "Commit the updated dependency files",
)

SECRETS_STEPS = [
    "Remove hardcoded credentials from source code",
    "Use environment variables for sensitive data",
    "Add .env to .gitignore",
    "Rotate any exposed credentials immediately",
    "Consider using a secrets management service (AWS Secrets Manager, HashiCorp Vault)",
]

SQL_INJECTION_STEPS = [
    "Replace string concatenation with parameterized queries",
    "Use prepared statements",
    "Consider using an ORM (Prisma, TypeORM, SQLAlchemy)",
    "Validate and sanitize all user inputs",
    "Implement input validation middleware",
]

XSS_STEPS = [
    "Use framework-provided escaping (React automatically escapes)",
    "Avoid dangerouslySetInnerHTML unless absolutely necessary",
    "Implement Content Security Policy (CSP) headers",
    "Sanitize user input on both client and server",
    "Use DOMPurify for sanitizing HTML if needed",
]

DEPRECATED_STEPS = [
    "Review deprecated packages and find maintained alternatives",
    "Update code to use the new packages",
    "Test thoroughly after migration",
    "Keep dependencies up to date regularly",
]

SUSPICIOUS_STEPS = [
    "Verify package names are correct (check for typosquatting)",
    "Review package maintainers and reputation",
    "Check package source code if possible",
    "Consider finding alternative packages with better reputation",
    "Use lock files to prevent unexpected updates",
]


def priority_for_severity(severity: SeverityLevel) -> int:
    if severity == "CRITICAL":
        return 10
    if severity == "HIGH":
        return 8
    if severity == "MEDIUM":
        return 5
    if severity == "LOW":
        return 3
    if severity == "INFO":
        return 1
    assert_never(severity)


def _ids(findings: Sequence[DependencyFinding | CodeFinding]) -> list[int]:
    return [f.id for f in findings if f.id is not None]


def _highest_version(versions: list[str]) -> str:
    """Highest parseable version; falls back to the first entry when none parse."""
    parsed: list[tuple[Version, str]] = []
    for v in versions:
        try:
            parsed.append((Version(v), v))
        except InvalidVersion:
            continue
    if not parsed:
        return versions[0]
    return max(parsed)[1]


def _dependency_update_recommendations(
    findings: Sequence[DependencyFinding],
) -> list[RecommendationDraft]:
    groups: defaultdict[tuple[str, SeverityLevel], list[DependencyFinding]] = defaultdict(list)
    for finding in findings:
        if finding.fixed_version:
            groups[(finding.package_name, finding.severity)].append(finding)

    drafts: list[RecommendationDraft] = []
    for (package, severity), group in groups.items():
        first = group[0]
        fixed_version = _highest_version([f.fixed_version for f in group if f.fixed_version])
        manifest = first.file_path or "your dependency manifest"
        drafts.append(
            RecommendationDraft(
                severity=severity,
                category=CATEGORY_DEPENDENCY_UPDATE,
                title=f"Update {package} to fix {len(group)} vulnerability(ies)",
                description=(
                    f"The package {package}@{first.package_version} has {len(group)} known "
                    f"security vulnerability(ies). Update to version {fixed_version} or later "
                    "to fix these issues."
                ),
                steps=[
                    step.format(manifest=manifest, package=package, fixed_version=fixed_version)
                    for step in DEPENDENCY_UPDATE_STEPS_TEMPLATE
                ],
                related_vulnerability_ids=_ids(group),
                estimated_effort="15-30 minutes",
                priority=priority_for_severity(severity),
            )
        )
    return drafts


def generate_recommendations(
    findings: Sequence[DependencyFinding | CodeFinding],
    risks: Sequence[DependencyRiskResult],
) -> list[RecommendationDraft]:
    """Deterministic recommendations; related ids are taken from findings that have been persisted."""
    dependency_findings: list[DependencyFinding] = []
    by_type: defaultdict[CodeVulnerabilityType, list[CodeFinding]] = defaultdict(list)
    for finding in findings:
        match finding:
            case DependencyFinding():
                dependency_findings.append(finding)
            case CodeFinding():
                by_type[finding.type].append(finding)
            case _:
                assert_never(finding)

    recommendations = _dependency_update_recommendations(dependency_findings)

    secrets = by_type.get("SECRETS_EXPOSURE", [])
    if secrets:
        recommendations.append(
            RecommendationDraft(
                severity="CRITICAL",
                category=CATEGORY_SECURITY_CONFIGURATION,
                title="Remove exposed secrets from codebase",
                description=(
                    f"Found {len(secrets)} potential secrets or credentials in your code. "
                    "These should be moved to environment variables."
                ),
                steps=list(SECRETS_STEPS),
                related_vulnerability_ids=_ids(secrets),
                estimated_effort="1-2 hours",
                priority=SECRETS_PRIORITY,
            )
        )

    sql_injection = by_type.get("SQL_INJECTION", [])
    if sql_injection:
        recommendations.append(
            RecommendationDraft(
                severity="HIGH",
                category=CATEGORY_CODE_FIX,
                title="Fix SQL injection vulnerabilities",
                description=(
                    f"Found {len(sql_injection)} potential SQL injection vulnerability(ies). "
                    "Use parameterized queries or ORM instead of string concatenation."
                ),
                steps=list(SQL_INJECTION_STEPS),
                related_vulnerability_ids=_ids(sql_injection),
                estimated_effort="2-4 hours",
                priority=SQL_INJECTION_PRIORITY,
            )
        )

    xss = by_type.get("XSS", [])
    if xss:
        recommendations.append(
            RecommendationDraft(
                severity="HIGH",
                category=CATEGORY_CODE_FIX,
                title="Fix Cross-Site Scripting (XSS) vulnerabilities",
                description=(
                    f"Found {len(xss)} potential XSS vulnerability(ies). "
                    "Always sanitize user input before rendering."
                ),
                steps=list(XSS_STEPS),
                related_vulnerability_ids=_ids(xss),
                estimated_effort="1-3 hours",
                priority=XSS_PRIORITY,
            )
        )

    deprecated = [r for r in risks if r.is_deprecated]
    if deprecated:
        recommendations.append(
            RecommendationDraft(
                severity="MEDIUM",
                category=CATEGORY_DEPENDENCY_MAINTENANCE,
                title=f"Replace {len(deprecated)} deprecated dependencies",
                description=(
                    "Using deprecated packages can lead to security issues and lack of support: "
                    + ", ".join(sorted({r.package_name for r in deprecated}))
                    + "."
                ),
                steps=list(DEPRECATED_STEPS),
                estimated_effort="4-8 hours",
                priority=DEPRECATED_PRIORITY,
            )
        )

    suspicious = [r for r in risks if r.suspicious_score > HIGH_RISK_SUSPICIOUS_THRESHOLD]
    if suspicious:
        recommendations.append(
            RecommendationDraft(
                severity="HIGH",
                category=CATEGORY_SUPPLY_CHAIN,
                title=f"Review {len(suspicious)} suspicious package(s)",
                description=(
                    "Some packages show characteristics that may indicate security risks "
                    "(typosquatting, generic names): "
                    + ", ".join(sorted({r.package_name for r in suspicious}))
                    + "."
                ),
                steps=list(SUSPICIOUS_STEPS),
                estimated_effort="1-2 hours",
                priority=SUSPICIOUS_PACKAGES_PRIORITY,
            )
        )

    return recommendations
