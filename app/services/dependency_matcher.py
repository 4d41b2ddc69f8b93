"""Match declared dependencies against the known-vulnerability table.

Declared versions are reduced to digits and dots before comparison, so npm and
pip constraints such as ^4.17.15, ~=2.1 or >=1.0 are evaluated at the version
they pin. Two predicates are available: "semver" evaluates the affected range
as comparators, "substring" reproduces the legacy containment check.
"""

import logging
import re
from collections.abc import Iterable
from typing import Literal

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from app.schemas.dependencies import DeclaredDependency
from app.schemas.findings import DependencyFinding
from app.schemas.threat_intel import KnownVulnerability, ThreatIntel

logger = logging.getLogger(__name__)

VersionMatchMode = Literal["semver", "substring"]

_NON_VERSION_CHARS = re.compile(r"[^0-9.]")
# Operator followed by a version, e.g. "<4.17.21", ">= 2.0", "1.2.3".
_COMPARATOR = re.compile(r"(<=|>=|==|!=|<|>|=)?\s*v?(\d[\w.\-+]*)")


def clean_version(version_spec: str) -> str:
    """Strip range operators and any other non-numeric characters (keeps digits and dots)."""
    return _NON_VERSION_CHARS.sub("", version_spec or "").strip(".")


def _parse_version(cleaned: str) -> Version | None:
    if not cleaned:
        return None
    try:
        return Version(cleaned)
    except InvalidVersion:
        return None


def _range_to_specifier_sets(affected_versions: str) -> list[SpecifierSet]:
    """Translate 'a b || c' (AND within, OR across) into PEP 440 specifier sets."""
    sets: list[SpecifierSet] = []
    for alternative in affected_versions.split("||"):
        clauses: list[str] = []
        for op, version in _COMPARATOR.findall(alternative.replace(",", " ")):
            if op in ("", "="):
                op = "=="
            clauses.append(f"{op}{version}")
        if not clauses:
            continue
        try:
            sets.append(SpecifierSet(",".join(clauses)))
        except InvalidSpecifier:
            logger.warning("Ignoring unparseable affected range %r", affected_versions)
    return sets


def version_in_range(
    version_spec: str,
    affected_versions: str,
    mode: VersionMatchMode = "semver",
) -> bool:
    """
    True when the declared version falls in the affected range.

    Unparseable or empty versions never match.
    """
    cleaned = clean_version(version_spec)
    if mode == "substring":
        return bool(cleaned) and _parse_version(cleaned) is not None and cleaned in affected_versions
    version = _parse_version(cleaned)
    if version is None:
        return False
    return any(
        spec_set.contains(version, prereleases=True)
        for spec_set in _range_to_specifier_sets(affected_versions)
    )


def _to_finding(dep: DeclaredDependency, advisory: KnownVulnerability) -> DependencyFinding:
    return DependencyFinding(
        severity=advisory.severity,
        title=f"{dep.name}: {advisory.title}",
        description=advisory.description,
        package_name=dep.name,
        package_version=dep.version_spec,
        fixed_version=advisory.fixed_version,
        cve_id=advisory.cve_id,
        cvss_score=advisory.cvss_score,
        owasp_category=advisory.owasp_category,
        file_path=dep.manifest_path,
    )


def match_dependencies(
    dependencies: Iterable[DeclaredDependency],
    intel: ThreatIntel,
    mode: VersionMatchMode = "semver",
) -> list[DependencyFinding]:
    """One finding per (dependency, matching advisory). Unknown packages produce nothing."""
    findings: list[DependencyFinding] = []
    for dep in dependencies:
        table = intel.known_vulnerabilities.get(dep.manager, {})
        advisories = table.get(dep.name)
        if not advisories:
            continue
        for advisory in advisories:
            if version_in_range(dep.version_spec, advisory.affected_versions, mode):
                findings.append(_to_finding(dep, advisory))
    return findings
