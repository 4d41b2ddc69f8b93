"""Tests for the scan CLI and the repository registration script."""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from db_fixtures import make_session_factory

from app.models import Repository
from app.scan import main as scan_main
from app.scripts.register_repository import main as register_main
from app.services.scan_runner import ScanTargetNotFoundError


class TestScanCli(unittest.TestCase):
    @patch("app.scan.run_scan", new_callable=AsyncMock)
    @patch("app.scan.SessionLocal")
    def test_completed_scan_exits_zero(self, mock_session_local: MagicMock, mock_run_scan: AsyncMock) -> None:
        session = MagicMock()
        mock_session_local.return_value = session
        mock_run_scan.return_value = MagicMock(id=7, risk_score=20, total_vulnerabilities=2)

        self.assertEqual(scan_main(["3", "/srv/repos/web", "abc123"]), 0)

        args = mock_run_scan.await_args
        self.assertEqual(args.args[:4], (session, 3, "/srv/repos/web", "abc123"))
        session.close.assert_called_once()

    @patch("app.scan.run_scan", new_callable=AsyncMock)
    @patch("app.scan.SessionLocal")
    def test_failed_scan_exits_one(self, mock_session_local: MagicMock, mock_run_scan: AsyncMock) -> None:
        session = MagicMock()
        mock_session_local.return_value = session
        mock_run_scan.side_effect = ScanTargetNotFoundError("Scan target /nope does not exist or is not a directory.")

        with self.assertLogs("app.scan", level="ERROR"):
            self.assertEqual(scan_main(["3", "/nope", "abc123"]), 1)
        session.close.assert_called_once()


class TestRegisterRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, self.session_factory = make_session_factory()

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_registers_once(self) -> None:
        with patch("app.scripts.register_repository.SessionLocal", self.session_factory):
            self.assertEqual(register_main(["proj-1", "acme/web"]), 0)
            self.assertEqual(register_main(["proj-1", "acme/web"]), 1)
        session = self.session_factory()
        try:
            repos = session.query(Repository).all()
            self.assertEqual([(r.project_id, r.name) for r in repos], [("proj-1", "acme/web")])
        finally:
            session.close()

    def test_rejects_blank_name(self) -> None:
        with patch("app.scripts.register_repository.SessionLocal", self.session_factory):
            self.assertEqual(register_main(["proj-1", "   "]), 1)


if __name__ == "__main__":
    unittest.main()
