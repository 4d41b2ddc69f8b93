"""Pydantic schemas for the threat-intelligence data files (known CVEs, supply-chain tables)."""

import re

from pydantic import BaseModel, Field, field_validator

from app.schemas.dependencies import PackageManager
from app.schemas.findings import SeverityLevel


class KnownVulnerability(BaseModel):
    """One advisory entry for a package in the known-vulnerability table."""

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    severity: SeverityLevel
    affected_versions: str = Field(
        ...,
        min_length=1,
        description="Comparator range, e.g. '<4.17.21' or '>=2.0.0 <2.3.0 || <1.9.5'.",
    )
    fixed_version: str | None = None
    cve_id: str | None = None
    cvss_score: float | None = Field(default=None, ge=0, le=10)
    owasp_category: str | None = None


class SupplyChainData(BaseModel):
    """Static tables used by the supply-chain scorer."""

    popular_packages: list[str] = Field(default_factory=list)
    deprecated_packages: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Manager name (or 'any') -> deprecated package names.",
    )
    high_risk_licenses: list[str] = Field(default_factory=list)
    medium_risk_licenses: list[str] = Field(default_factory=list)
    generic_name_patterns: list[str] = Field(default_factory=list)

    @field_validator("generic_name_patterns")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid generic name pattern {pattern!r}: {e}") from e
        return v


class ThreatIntel(BaseModel):
    """All threat-intelligence data needed by one scan."""

    known_vulnerabilities: dict[PackageManager, dict[str, list[KnownVulnerability]]] = Field(
        default_factory=dict,
    )
    supply_chain: SupplyChainData = Field(default_factory=SupplyChainData)
