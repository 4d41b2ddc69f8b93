"""
CLI entrypoint for a one-off security scan of a snapshot already on disk:

  python -m app.scan REPO_ID SNAPSHOT_PATH COMMIT_SHA

Exit code 0 when the report is COMPLETED, 1 when the scan failed or could not start.
"""

import argparse
import asyncio
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.scan_runner import run_scan

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Scan a repository snapshot and store a security report.")
    parser.add_argument("repo_id", type=int, help="Id of an existing repository row")
    parser.add_argument("snapshot_path", help="Directory containing the checked-out repository")
    parser.add_argument("commit_sha", help="Commit the snapshot was taken at")
    args = parser.parse_args(argv)

    settings = get_settings()
    db = SessionLocal()
    try:
        report = asyncio.run(
            run_scan(db, args.repo_id, args.snapshot_path, args.commit_sha, settings=settings)
        )
        logger.info(
            "Scan completed: report_id=%s risk_score=%s total_vulnerabilities=%s",
            report.id,
            report.risk_score,
            report.total_vulnerabilities,
        )
        return 0
    except Exception as e:
        logger.exception("Scan failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
