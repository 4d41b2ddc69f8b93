"""Tests for supply-chain scoring: edit distance, naming heuristics, deprecation, licenses."""

import asyncio
import threading
import unittest

from app.schemas.dependencies import DeclaredDependency
from app.schemas.threat_intel import SupplyChainData, ThreatIntel
from app.services.file_walker import ScanBudget, ScanCancelledError, ScanTimeoutError
from app.services.supply_chain import (
    analyze_supply_chain,
    assess_license_risk,
    assess_package,
    is_deprecated,
    levenshtein_distance,
    overall_risk_level,
    suspicious_score,
)


def _data() -> SupplyChainData:
    return SupplyChainData(
        popular_packages=["react", "vue", "angular", "express", "lodash", "axios"],
        deprecated_packages={"npm": ["request", "node-uuid"], "pip": ["nose"], "any": ["left-pad"]},
        high_risk_licenses=["GPL-3.0", "AGPL-3.0", "SSPL"],
        medium_risk_licenses=["GPL-2.0", "LGPL-3.0", "LGPL-2.1"],
        generic_name_patterns=[r"^lib[a-z]{1,3}$", r"^utils?[0-9]$", r"^core[0-9]$"],
    )


class TestLevenshteinDistance(unittest.TestCase):
    def test_known_values(self) -> None:
        self.assertEqual(levenshtein_distance("react", "react"), 0)
        self.assertEqual(levenshtein_distance("react", "reactt"), 1)
        self.assertEqual(levenshtein_distance("react", "raect"), 2)
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)

    def test_symmetric(self) -> None:
        self.assertEqual(levenshtein_distance("lodash", "lodahs"), levenshtein_distance("lodahs", "lodash"))


class TestSuspiciousScore(unittest.TestCase):
    def test_distance_one_from_popular(self) -> None:
        self.assertEqual(suspicious_score("reactt", _data()), 50)

    def test_distance_two_from_popular(self) -> None:
        self.assertEqual(suspicious_score("raect", _data()), 30)

    def test_popular_package_itself_scores_zero(self) -> None:
        self.assertEqual(suspicious_score("react", _data()), 0)

    def test_naming_heuristics(self) -> None:
        data = _data()
        self.assertEqual(suspicious_score("test12", data), 20)
        self.assertEqual(suspicious_score("moment12345", data), 15)
        self.assertEqual(suspicious_score("qz", data), 10)
        self.assertEqual(suspicious_score("libxyz", data), 25)

    def test_score_is_capped(self) -> None:
        data = _data().model_copy(
            update={"popular_packages": ["reac", "reactx", "reacta", "reactb"]}
        )
        self.assertEqual(suspicious_score("react", data), 100)


class TestDeprecation(unittest.TestCase):
    def test_per_manager_lists(self) -> None:
        data = _data()
        self.assertTrue(is_deprecated("request", "npm", data))
        self.assertFalse(is_deprecated("request", "pip", data))
        self.assertTrue(is_deprecated("nose", "pip", data))

    def test_any_list_applies_to_every_manager(self) -> None:
        self.assertTrue(is_deprecated("left-pad", "composer", _data()))


class TestLicenseRisk(unittest.TestCase):
    def test_license_families(self) -> None:
        data = _data()
        self.assertEqual(assess_license_risk("GPL-3.0-only", data), "HIGH")
        self.assertEqual(assess_license_risk("AGPL-3.0", data), "HIGH")
        self.assertEqual(assess_license_risk("gpl-2.0", data), "MEDIUM")
        self.assertEqual(assess_license_risk("LGPL-3.0", data), "MEDIUM")
        self.assertEqual(assess_license_risk("MIT", data), "LOW")

    def test_unknown_license_is_low(self) -> None:
        self.assertEqual(assess_license_risk(None, _data()), "LOW")
        self.assertEqual(assess_license_risk("  ", _data()), "LOW")


class TestRiskLevel(unittest.TestCase):
    def test_levels(self) -> None:
        self.assertEqual(overall_risk_level(71, False, "LOW"), "HIGH")
        self.assertEqual(overall_risk_level(70, False, "LOW"), "LOW")
        self.assertEqual(overall_risk_level(0, True, "LOW"), "MEDIUM")
        self.assertEqual(overall_risk_level(0, False, "HIGH"), "MEDIUM")

    def test_assess_package_unpinned_version(self) -> None:
        dep = DeclaredDependency(name="request", version_spec="", manager="npm")
        result = assess_package(dep, _data())
        self.assertEqual(result.package_version, "latest")
        self.assertTrue(result.is_deprecated)
        self.assertFalse(result.has_vulnerabilities)
        self.assertEqual(result.risk_level, "MEDIUM")
        self.assertIsNone(result.license)


class TestAnalyzeSupplyChain(unittest.TestCase):
    def test_one_result_per_dependency_in_order(self) -> None:
        deps = [
            DeclaredDependency(name="reactt", version_spec="1.0.0", manager="npm"),
            DeclaredDependency(name="flask", version_spec="2.0", manager="pip"),
        ]
        results = asyncio.run(analyze_supply_chain(deps, ThreatIntel(supply_chain=_data())))
        self.assertEqual([r.package_name for r in results], ["reactt", "flask"])
        self.assertEqual(results[0].suspicious_score, 50)
        self.assertEqual(results[1].license_risk, "LOW")

    def test_license_lookup_is_used(self) -> None:
        async def lookup(dep: DeclaredDependency) -> str | None:
            return "GPL-3.0" if dep.manager == "npm" else None

        deps = [
            DeclaredDependency(name="copyleft-lib", version_spec="1.0.0", manager="npm"),
            DeclaredDependency(name="flask", version_spec="2.0", manager="pip"),
        ]
        results = asyncio.run(
            analyze_supply_chain(deps, ThreatIntel(supply_chain=_data()), license_lookup=lookup)
        )
        self.assertEqual(results[0].license, "GPL-3.0")
        self.assertEqual(results[0].license_risk, "HIGH")
        self.assertEqual(results[0].risk_level, "MEDIUM")
        self.assertIsNone(results[1].license)

    def test_empty_input(self) -> None:
        self.assertEqual(asyncio.run(analyze_supply_chain([], ThreatIntel())), [])


def _npm_deps(count: int) -> list[DeclaredDependency]:
    return [DeclaredDependency(name=f"pkg-{i}", version_spec="1.0.0", manager="npm") for i in range(count)]


class TestLicenseLookupLimits(unittest.TestCase):
    def test_lookups_in_flight_are_capped(self) -> None:
        in_flight = 0
        peak = 0

        async def slow_lookup(dep: DeclaredDependency) -> str | None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return "MIT"

        results = asyncio.run(
            analyze_supply_chain(
                _npm_deps(200),
                ThreatIntel(supply_chain=_data()),
                license_lookup=slow_lookup,
                max_concurrency=4,
            )
        )
        self.assertEqual(len(results), 200)
        self.assertTrue(all(r.license == "MIT" for r in results))
        self.assertLessEqual(peak, 4)
        self.assertGreater(peak, 1)

    def test_cancelled_budget_stops_lookups(self) -> None:
        calls: list[str] = []

        async def lookup(dep: DeclaredDependency) -> str | None:
            calls.append(dep.name)
            return None

        cancel = threading.Event()
        cancel.set()
        budget = ScanBudget(max_files=10, timeout_sec=60, max_file_bytes=4096, cancel_event=cancel)
        with self.assertRaises(ScanCancelledError):
            asyncio.run(
                analyze_supply_chain(
                    _npm_deps(10), ThreatIntel(), license_lookup=lookup, budget=budget
                )
            )
        self.assertEqual(calls, [])

    def test_expired_budget_stops_lookups(self) -> None:
        budget = ScanBudget(max_files=10, timeout_sec=60, max_file_bytes=4096)
        budget.deadline = 0.0
        with self.assertRaises(ScanTimeoutError):
            asyncio.run(analyze_supply_chain(_npm_deps(3), ThreatIntel(), budget=budget))

    def test_failed_lookup_cancels_the_rest(self) -> None:
        finished: list[str] = []

        async def lookup(dep: DeclaredDependency) -> str | None:
            if dep.name == "pkg-0":
                raise RuntimeError("registry exploded")
            await asyncio.sleep(0.5)
            finished.append(dep.name)
            return None

        async def run() -> None:
            with self.assertRaises(RuntimeError):
                await analyze_supply_chain(
                    _npm_deps(5), ThreatIntel(), license_lookup=lookup, max_concurrency=5
                )
            # Give any orphaned lookup time to finish if it was not cancelled.
            await asyncio.sleep(0.6)

        asyncio.run(run())
        self.assertEqual(finished, [])


if __name__ == "__main__":
    unittest.main()
