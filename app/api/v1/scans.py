"""Scan trigger endpoint: create a PENDING report and run the scan in the background."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db, get_session_factory
from app.models import Repository
from app.schemas.reports import ScanAccepted, ScanRequest
from app.services.scan_locks import ScanLockRegistry, get_scan_locks
from app.services.scan_runner import create_pending_report, run_pending_scan

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_snapshot_path(snapshot_path: str, base_dir: str) -> Path | None:
    """Resolved snapshot directory, or None if it is missing or outside base_dir."""
    base = Path(base_dir).resolve()
    candidate = Path(snapshot_path)
    if not candidate.is_absolute():
        candidate = base / candidate
    candidate = candidate.resolve()
    if not candidate.is_relative_to(base) or not candidate.is_dir():
        return None
    return candidate


@router.post("/repos/{repo_id}/scans", response_model=ScanAccepted, status_code=202)
def post_scan(
    repo_id: int,
    body: ScanRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    locks: Annotated[ScanLockRegistry, Depends(get_scan_locks)],
) -> ScanAccepted:
    """
    Start a scan of a repository snapshot already on disk.

    Returns 202 with the PENDING report id; poll GET /reports/{report_id} for
    the outcome. 404 for an unknown repository, 409 when a scan of the same
    repository is in flight, 422 when snapshot_path is missing or outside
    SNAPSHOT_BASE_DIR.
    """
    if db.get(Repository, repo_id) is None:
        raise HTTPException(status_code=404, detail="Repository not found.")

    snapshot = resolve_snapshot_path(body.snapshot_path, settings.SNAPSHOT_BASE_DIR)
    if snapshot is None:
        raise HTTPException(
            status_code=422,
            detail="snapshot_path must be an existing directory under SNAPSHOT_BASE_DIR.",
        )

    if not locks.try_acquire(repo_id):
        raise HTTPException(
            status_code=409,
            detail="A security scan is already running for this repository.",
        )
    try:
        report = create_pending_report(db, repo_id, body.commit_sha)
    except Exception:
        locks.release(repo_id)
        raise

    background_tasks.add_task(
        run_pending_scan,
        session_factory,
        repo_id,
        report.id,
        snapshot,
        settings=settings,
        locks=locks,
    )
    logger.info(
        "Security scan queued",
        extra={"report_id": report.id, "repo_id": repo_id, "commit_sha": body.commit_sha},
    )
    return ScanAccepted(report_id=report.id, repo_id=repo_id)
