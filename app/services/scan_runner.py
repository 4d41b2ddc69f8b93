"""Scan entry point: run the three scanners over a snapshot and persist a SecurityReport.

Report lifecycle: PENDING -> SCANNING -> COMPLETED | FAILED. Children, counts,
risk score, and recommendations are written in the same transaction that
marks the report COMPLETED. Any error, task cancellation included, rolls those
back, marks the report FAILED, and is re-raised to the caller; no retries
happen here.
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, assert_never

from sqlalchemy.orm import Session

from app.models import (
    REPORT_STATUSES,
    DependencyRisk,
    SecurityRecommendation,
    SecurityReport,
    Vulnerability,
)
from app.schemas.dependencies import DependencyRiskResult
from app.schemas.findings import CodeFinding, DependencyFinding
from app.schemas.threat_intel import ThreatIntel
from app.services.code_scanner import scan_repository
from app.services.dependency_matcher import match_dependencies
from app.services.file_walker import ScanBudget, ScanError
from app.services.license_lookup import LicenseLookup, open_license_lookup
from app.services.manifests import read_manifests
from app.services.recommendations import generate_recommendations
from app.services.risk_score import calculate_risk_score, count_by_severity
from app.services.scan_locks import ScanLockRegistry, scan_locks
from app.services.supply_chain import analyze_supply_chain
from app.services.threat_intel import get_threat_intel

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

PENDING, SCANNING, COMPLETED, FAILED = REPORT_STATUSES

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({SCANNING}),
    SCANNING: frozenset({COMPLETED, FAILED}),
    COMPLETED: frozenset(),
    FAILED: frozenset(),
}

MAX_ERROR_MESSAGE_LENGTH = 2000
CANCELLED_MESSAGE = "Scan was cancelled."


class ScanTargetNotFoundError(ScanError):
    """Raised when the snapshot path does not exist or is not a directory."""


class InvalidStatusTransitionError(Exception):
    """Raised when a report status change is not allowed by the lifecycle."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        self.message = f"Cannot move security report from {current} to {requested}."
        super().__init__(self.message)


def transition(report: SecurityReport, new_status: str) -> None:
    """Set report.status, enforcing PENDING -> SCANNING -> COMPLETED | FAILED."""
    current = report.status or PENDING
    if new_status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(current, new_status)
    report.status = new_status


def create_pending_report(session: Session, repo_id: int, commit_sha: str) -> SecurityReport:
    """Insert and commit a new PENDING report; every scan gets its own report."""
    report = SecurityReport(repo_id=repo_id, commit_sha=commit_sha, status=PENDING)
    session.add(report)
    session.commit()
    session.refresh(report)
    return report


def mark_vulnerable_dependencies(
    risks: Sequence[DependencyRiskResult],
    findings: Sequence[DependencyFinding],
    managers_by_manifest: dict[str, str],
) -> list[DependencyRiskResult]:
    """Set has_vulnerabilities on risks whose (package, manager) has a dependency finding."""
    vulnerable = {
        (f.package_name, managers_by_manifest.get(f.file_path, "")) for f in findings
    }
    return [
        r.model_copy(update={"has_vulnerabilities": True})
        if (r.package_name, r.package_manager) in vulnerable
        else r
        for r in risks
    ]


async def collect_scan_results(
    snapshot_path: str | Path,
    intel: ThreatIntel,
    settings: "Settings",
    license_lookup: LicenseLookup | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[list[DependencyFinding | CodeFinding], list[DependencyRiskResult]]:
    """
    Run the dependency matcher, code scanner, and supply-chain scorer concurrently.

    All three must succeed; the first failure aborts the others and is raised.
    """
    root = Path(snapshot_path)
    if not root.is_dir():
        raise ScanTargetNotFoundError(f"Scan target {root} does not exist or is not a directory.")

    budget = ScanBudget(
        max_files=settings.SCAN_MAX_FILES,
        timeout_sec=settings.SCAN_TIMEOUT_SEC,
        max_file_bytes=settings.SCAN_MAX_FILE_BYTES,
        cancel_event=cancel_event,
    )
    dependencies = await asyncio.to_thread(read_manifests, root)
    tasks = [
        asyncio.ensure_future(
            asyncio.to_thread(
                match_dependencies, dependencies, intel, settings.VERSION_MATCH_MODE
            )
        ),
        asyncio.ensure_future(asyncio.to_thread(scan_repository, root, budget)),
        asyncio.ensure_future(
            analyze_supply_chain(
                dependencies,
                intel,
                license_lookup,
                max_concurrency=settings.REGISTRY_MAX_CONCURRENCY,
                budget=budget,
            )
        ),
    ]
    try:
        dependency_findings, code_findings, risks = await asyncio.gather(*tasks)
    except BaseException:
        # Threads stop at their next budget check; coroutines are cancelled.
        budget.abort()
        for task in tasks:
            task.cancel()
        raise

    managers_by_manifest = {d.manifest_path: d.manager for d in dependencies}
    risks = mark_vulnerable_dependencies(risks, dependency_findings, managers_by_manifest)
    return [*dependency_findings, *code_findings], risks


def _vulnerability_row(report_id: int, finding: DependencyFinding | CodeFinding) -> Vulnerability:
    row = Vulnerability(
        security_report_id=report_id,
        type=finding.type,
        severity=finding.severity,
        title=finding.title,
        description=finding.description,
        file_path=finding.file_path or None,
        owasp_category=finding.owasp_category,
        cwe_id=finding.cwe_id,
        resolved=False,
    )
    match finding:
        case DependencyFinding():
            row.cve_id = finding.cve_id
            row.cvss_score = finding.cvss_score
            row.package_name = finding.package_name
            row.package_version = finding.package_version
            row.fixed_version = finding.fixed_version
        case CodeFinding():
            row.line_number = finding.line_number
            row.code_snippet = finding.code_snippet
        case _:
            assert_never(finding)
    return row


def _persist_results(
    session: Session,
    report: SecurityReport,
    findings: Sequence[DependencyFinding | CodeFinding],
    risks: Sequence[DependencyRiskResult],
) -> None:
    """Insert children, then fill in counts, score, and status on the report (no commit)."""
    rows = [_vulnerability_row(report.id, f) for f in findings]
    session.add_all(rows)
    session.flush()
    persisted = [f.model_copy(update={"id": row.id}) for f, row in zip(findings, rows)]

    for risk in risks:
        session.add(DependencyRisk(security_report_id=report.id, **risk.model_dump()))

    for draft in generate_recommendations(persisted, risks):
        session.add(
            SecurityRecommendation(
                security_report_id=report.id,
                implemented=False,
                **draft.model_dump(),
            )
        )

    counts = count_by_severity(persisted)
    report.total_vulnerabilities = counts.total_vulnerabilities
    report.critical_count = counts.critical_count
    report.high_count = counts.high_count
    report.medium_count = counts.medium_count
    report.low_count = counts.low_count
    report.risk_score = calculate_risk_score(persisted, risks)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _error_message(error: BaseException) -> str:
    if isinstance(error, asyncio.CancelledError):
        return CANCELLED_MESSAGE
    message = str(getattr(error, "message", error)) or type(error).__name__
    return message[:MAX_ERROR_MESSAGE_LENGTH]


async def _scan_with_lookup(
    snapshot_path: str | Path,
    intel: ThreatIntel,
    settings: "Settings",
    license_lookup: LicenseLookup | None,
    cancel_event: threading.Event | None,
) -> tuple[list[DependencyFinding | CodeFinding], list[DependencyRiskResult]]:
    if license_lookup is not None:
        return await collect_scan_results(
            snapshot_path, intel, settings, license_lookup, cancel_event
        )
    async with open_license_lookup(settings) as lookup:
        return await collect_scan_results(snapshot_path, intel, settings, lookup, cancel_event)


async def execute_scan(
    session: Session,
    report: SecurityReport,
    snapshot_path: str | Path,
    *,
    settings: "Settings",
    intel: ThreatIntel | None = None,
    license_lookup: LicenseLookup | None = None,
    cancel_event: threading.Event | None = None,
) -> SecurityReport:
    """Drive a PENDING report through SCANNING to COMPLETED, or to FAILED and re-raise."""
    start = time.perf_counter()
    transition(report, SCANNING)
    session.commit()
    logger.info(
        "Security scan started",
        extra={"report_id": report.id, "repo_id": report.repo_id, "commit_sha": report.commit_sha},
    )

    try:
        threat_intel = intel or get_threat_intel(settings.THREAT_INTEL_DIR)
        findings, risks = await _scan_with_lookup(
            snapshot_path, threat_intel, settings, license_lookup, cancel_event
        )
        _persist_results(session, report, findings, risks)
        report.scan_duration = _elapsed_ms(start)
        transition(report, COMPLETED)
        session.commit()
    except BaseException as e:
        # CancelledError and KeyboardInterrupt also leave a FAILED report behind.
        session.rollback()
        report.error_message = _error_message(e)
        report.scan_duration = _elapsed_ms(start)
        transition(report, FAILED)
        session.commit()
        logger.exception(
            "Security scan failed",
            extra={"report_id": report.id, "repo_id": report.repo_id, "status": "error"},
        )
        raise

    logger.info(
        "Security scan completed",
        extra={
            "report_id": report.id,
            "repo_id": report.repo_id,
            "risk_score": report.risk_score,
            "total_vulnerabilities": report.total_vulnerabilities,
            "scan_duration_ms": report.scan_duration,
        },
    )
    return report


async def run_scan(
    session: Session,
    repo_id: int,
    snapshot_path: str | Path,
    commit_sha: str,
    *,
    settings: "Settings",
    intel: ThreatIntel | None = None,
    license_lookup: LicenseLookup | None = None,
    cancel_event: threading.Event | None = None,
    locks: ScanLockRegistry | None = None,
) -> SecurityReport:
    """
    Scan a repository snapshot and return the persisted report.

    Each call creates a new report. Raises ScanAlreadyRunningError when the
    repository already has a scan in flight, and re-raises any scan failure
    after the report is marked FAILED.
    """
    registry = locks or scan_locks
    with registry.hold(repo_id):
        report = create_pending_report(session, repo_id, commit_sha)
        return await execute_scan(
            session,
            report,
            snapshot_path,
            settings=settings,
            intel=intel,
            license_lookup=license_lookup,
            cancel_event=cancel_event,
        )


def run_pending_scan(
    session_factory: Callable[[], Session],
    repo_id: int,
    report_id: int,
    snapshot_path: str | Path,
    *,
    settings: "Settings",
    locks: ScanLockRegistry | None = None,
    license_lookup: LicenseLookup | None = None,
) -> None:
    """
    Background-task body for API-triggered scans.

    Synchronous so FastAPI runs it in its threadpool: the scan gets its own
    event loop there and blocking Session calls stay off the server loop.
    The caller has already created the PENDING report and acquired the
    repository lock; this releases the lock when done. Failures are logged,
    not raised, since no caller is waiting; the FAILED report records them.
    """
    registry = locks or scan_locks
    session = session_factory()
    try:
        report = session.get(SecurityReport, report_id)
        if report is None:
            logger.error("Pending security report %s not found", report_id)
            return
        asyncio.run(
            execute_scan(
                session,
                report,
                snapshot_path,
                settings=settings,
                license_lookup=license_lookup,
            )
        )
    except Exception:
        logger.info(
            "Background security scan ended with failure",
            extra={"report_id": report_id, "repo_id": repo_id, "status": "error"},
        )
    finally:
        session.close()
        registry.release(repo_id)
