"""Pydantic schemas for declared dependencies and their supply-chain risk assessment."""

from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.findings import SeverityLevel

PackageManager = Literal["npm", "pip", "bundler", "composer"]


class DeclaredDependency(BaseModel):
    """One package entry read from a manifest."""

    name: str = Field(..., min_length=1)
    version_spec: str = Field(
        default="",
        description="Raw version constraint as written in the manifest; empty when unpinned.",
    )
    manager: PackageManager
    direct: bool = True
    depth: int = Field(default=0, ge=0)
    manifest_path: str = Field(
        default="",
        description="Manifest file name relative to the snapshot root.",
    )


class DependencyRiskResult(BaseModel):
    """Supply-chain assessment of a single declared package."""

    package_name: str = Field(..., min_length=1)
    package_version: str
    package_manager: PackageManager
    is_deprecated: bool = False
    has_vulnerabilities: bool = False
    license: str | None = None
    license_risk: SeverityLevel = "LOW"
    direct_dependency: bool = True
    dependency_depth: int = Field(default=0, ge=0)
    suspicious_score: int = Field(default=0, ge=0, le=100)
    risk_level: SeverityLevel = "LOW"
