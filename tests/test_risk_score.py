"""Tests for severity counts and the clamped aggregate risk score."""

import unittest

from app.schemas.dependencies import DependencyRiskResult
from app.schemas.findings import CodeFinding, DependencyFinding
from app.services.risk_score import (
    calculate_risk_score,
    count_by_severity,
    dependency_risk_points,
    severity_weight,
)


def _code(severity: str = "CRITICAL", line: int = 1) -> CodeFinding:
    return CodeFinding(
        type="SECRETS_EXPOSURE",
        severity=severity,
        title="Hardcoded API Key",
        description="Hardcoded credentials",
        file_path="app/config.js",
        line_number=line,
        code_snippet='apiKey = "x"',
        owasp_category="A07:2021 – Identification and Authentication Failures",
        cwe_id="CWE-798",
    )


def _dependency(severity: str = "HIGH") -> DependencyFinding:
    return DependencyFinding(
        severity=severity,
        title="lodash: Prototype Pollution",
        description="Prototype pollution",
        package_name="lodash",
        package_version="4.17.15",
        fixed_version="4.17.21",
    )


def _risk(**overrides: object) -> DependencyRiskResult:
    fields: dict[str, object] = {
        "package_name": "pkg",
        "package_version": "1.0.0",
        "package_manager": "npm",
    }
    fields.update(overrides)
    return DependencyRiskResult(**fields)


class TestSeverityWeight(unittest.TestCase):
    def test_weights(self) -> None:
        self.assertEqual(
            [severity_weight(s) for s in ("CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO")],
            [10, 5, 2, 1, 0],
        )


class TestCountBySeverity(unittest.TestCase):
    def test_info_counts_as_low(self) -> None:
        findings = [_code("CRITICAL"), _dependency("HIGH"), _code("MEDIUM"), _code("LOW"), _code("INFO")]
        counts = count_by_severity(findings)
        self.assertEqual(counts.total_vulnerabilities, 5)
        self.assertEqual(counts.critical_count, 1)
        self.assertEqual(counts.high_count, 1)
        self.assertEqual(counts.medium_count, 1)
        self.assertEqual(counts.low_count, 2)

    def test_empty(self) -> None:
        counts = count_by_severity([])
        self.assertEqual(counts.total_vulnerabilities, 0)
        self.assertEqual(counts.critical_count, 0)


class TestDependencyRiskPoints(unittest.TestCase):
    def test_all_signals(self) -> None:
        risk = _risk(is_deprecated=True, has_vulnerabilities=True, suspicious_score=60, license_risk="HIGH")
        self.assertEqual(dependency_risk_points(risk), 15)

    def test_suspicious_threshold_is_exclusive(self) -> None:
        self.assertEqual(dependency_risk_points(_risk(suspicious_score=50)), 0)
        self.assertEqual(dependency_risk_points(_risk(suspicious_score=51)), 5)

    def test_medium_license_adds_nothing(self) -> None:
        self.assertEqual(dependency_risk_points(_risk(license_risk="MEDIUM")), 0)


class TestCalculateRiskScore(unittest.TestCase):
    def test_no_findings_is_zero(self) -> None:
        self.assertEqual(calculate_risk_score([], []), 0)

    def test_additive_below_cap(self) -> None:
        findings = [_code("CRITICAL"), _dependency("HIGH")]
        risks = [_risk(has_vulnerabilities=True)]
        self.assertEqual(calculate_risk_score(findings, risks), 20)

    def test_fifty_critical_findings_clamp_to_100(self) -> None:
        findings = [_code("CRITICAL", line=i + 1) for i in range(50)]
        self.assertEqual(calculate_risk_score(findings, []), 100)

    def test_adding_findings_never_decreases_score(self) -> None:
        findings: list[CodeFinding] = []
        previous = calculate_risk_score(findings, [])
        for severity in ("INFO", "LOW", "MEDIUM", "HIGH", "CRITICAL") * 4:
            findings.append(_code(severity, line=len(findings) + 1))
            score = calculate_risk_score(findings, [])
            self.assertGreaterEqual(score, previous)
            self.assertLessEqual(score, 100)
            previous = score


if __name__ == "__main__":
    unittest.main()
