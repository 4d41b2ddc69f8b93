"""Supply-chain risk scoring: typosquatting and naming heuristics, deprecation, license risk.

All signals come from the static supply-chain tables; the only optional network
access is the injected license lookup.
"""

import asyncio
import re
from collections.abc import Iterable

from app.schemas.dependencies import DeclaredDependency, DependencyRiskResult, PackageManager
from app.schemas.findings import SeverityLevel
from app.schemas.threat_intel import SupplyChainData, ThreatIntel
from app.services.file_walker import ScanBudget
from app.services.license_lookup import LicenseLookup, no_license_lookup

# Score contributions (additive, capped at MAX_SUSPICIOUS_SCORE).
TYPOSQUAT_DISTANCE_1_POINTS = 50
TYPOSQUAT_DISTANCE_2_POINTS = 30
SHORT_TEST_NAME_POINTS = 20
SHORT_TEST_NAME_MAX_LEN = 8
DIGIT_RUN_POINTS = 15
VERY_SHORT_NAME_POINTS = 10
VERY_SHORT_NAME_MAX_LEN = 3
GENERIC_NAME_POINTS = 25
MAX_SUSPICIOUS_SCORE = 100

# suspicious_score above this makes a package HIGH risk.
HIGH_RISK_SUSPICIOUS_THRESHOLD = 70

UNPINNED_VERSION = "latest"

DEFAULT_LOOKUP_CONCURRENCY = 8

_DIGIT_RUN = re.compile(r"[0-9]{3,}")


def levenshtein_distance(a: str, b: str) -> int:
    """Classic dynamic-programming edit distance (insert, delete, substitute all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a):
        current = [i + 1]
        for j, cb in enumerate(b):
            current.append(
                min(
                    previous[j + 1] + 1,
                    current[j] + 1,
                    previous[j] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def suspicious_score(name: str, data: SupplyChainData) -> int:
    """Naming-heuristic score in [0, 100]; higher means more likely malicious or typosquatted."""
    score = 0
    for popular in data.popular_packages:
        distance = levenshtein_distance(name, popular)
        if distance == 1:
            score += TYPOSQUAT_DISTANCE_1_POINTS
        elif distance == 2:
            score += TYPOSQUAT_DISTANCE_2_POINTS

    if "test" in name and len(name) < SHORT_TEST_NAME_MAX_LEN:
        score += SHORT_TEST_NAME_POINTS
    if _DIGIT_RUN.search(name):
        score += DIGIT_RUN_POINTS
    if len(name) < VERY_SHORT_NAME_MAX_LEN:
        score += VERY_SHORT_NAME_POINTS
    for pattern in data.generic_name_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            score += GENERIC_NAME_POINTS

    return min(score, MAX_SUSPICIOUS_SCORE)


def is_deprecated(name: str, manager: PackageManager, data: SupplyChainData) -> bool:
    """Membership in the manager's deprecated list or the manager-independent 'any' list."""
    return name in data.deprecated_packages.get(manager, []) or name in data.deprecated_packages.get(
        "any", []
    )


def assess_license_risk(license_id: str | None, data: SupplyChainData) -> SeverityLevel:
    """HIGH for strong copyleft families, MEDIUM for weaker copyleft, LOW otherwise or when unknown."""
    if not license_id or not license_id.strip():
        return "LOW"
    normalized = license_id.strip().upper()
    if any(normalized.startswith(prefix.upper()) for prefix in data.high_risk_licenses):
        return "HIGH"
    if any(normalized.startswith(prefix.upper()) for prefix in data.medium_risk_licenses):
        return "MEDIUM"
    return "LOW"


def overall_risk_level(score: int, deprecated: bool, license_risk: SeverityLevel) -> SeverityLevel:
    if score > HIGH_RISK_SUSPICIOUS_THRESHOLD:
        return "HIGH"
    if deprecated or license_risk == "HIGH":
        return "MEDIUM"
    return "LOW"


def assess_package(
    dep: DeclaredDependency,
    data: SupplyChainData,
    license_id: str | None = None,
) -> DependencyRiskResult:
    """Score one dependency. has_vulnerabilities is filled in later from dependency findings."""
    score = suspicious_score(dep.name, data)
    deprecated = is_deprecated(dep.name, dep.manager, data)
    license_risk = assess_license_risk(license_id, data)
    return DependencyRiskResult(
        package_name=dep.name,
        package_version=dep.version_spec or UNPINNED_VERSION,
        package_manager=dep.manager,
        is_deprecated=deprecated,
        has_vulnerabilities=False,
        license=license_id,
        license_risk=license_risk,
        direct_dependency=dep.direct,
        dependency_depth=dep.depth,
        suspicious_score=score,
        risk_level=overall_risk_level(score, deprecated, license_risk),
    )


async def analyze_supply_chain(
    dependencies: Iterable[DeclaredDependency],
    intel: ThreatIntel,
    license_lookup: LicenseLookup | None = None,
    *,
    max_concurrency: int = DEFAULT_LOOKUP_CONCURRENCY,
    budget: ScanBudget | None = None,
) -> list[DependencyRiskResult]:
    """
    One DependencyRiskResult per declared dependency, in input order.

    At most max_concurrency license lookups run at once, and the budget is
    checked before each one starts. If any lookup raises, the rest are cancelled.
    """
    deps = list(dependencies)
    lookup = license_lookup or no_license_lookup
    semaphore = asyncio.Semaphore(max_concurrency)

    async def resolve(dep: DeclaredDependency) -> str | None:
        async with semaphore:
            if budget is not None:
                budget.check()
            return await lookup(dep)

    tasks = [asyncio.ensure_future(resolve(dep)) for dep in deps]
    try:
        licenses = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
    return [
        assess_package(dep, intel.supply_chain, license_id)
        for dep, license_id in zip(deps, licenses)
    ]
