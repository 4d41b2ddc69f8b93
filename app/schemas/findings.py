"""Pydantic schemas for scan findings: severities, vulnerability types, dependency and code findings."""

from typing import Literal

from pydantic import BaseModel, Field

# Declaration order doubles as sort order (CRITICAL first).
SeverityLevel = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO"]

SEVERITY_ORDER: tuple[SeverityLevel, ...] = ("CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO")

SEVERITY_RANK: dict[str, int] = {s: i for i, s in enumerate(SEVERITY_ORDER)}

CodeVulnerabilityType = Literal[
    "SECRETS_EXPOSURE",
    "SQL_INJECTION",
    "XSS",
    "CRYPTOGRAPHY",
    "PATH_TRAVERSAL",
    "INSECURE_DESERIALIZATION",
]

VulnerabilityType = Literal["DEPENDENCY"] | CodeVulnerabilityType

CODE_VULNERABILITY_TYPES: tuple[CodeVulnerabilityType, ...] = (
    "SECRETS_EXPOSURE",
    "SQL_INJECTION",
    "XSS",
    "CRYPTOGRAPHY",
    "PATH_TRAVERSAL",
    "INSECURE_DESERIALIZATION",
)

MAX_SNIPPET_LENGTH = 500


class DependencyFinding(BaseModel):
    """A declared package whose version falls in a known vulnerable range."""

    type: Literal["DEPENDENCY"] = "DEPENDENCY"
    id: int | None = Field(default=None, description="Database id once persisted.")
    severity: SeverityLevel
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    package_name: str = Field(..., min_length=1)
    package_version: str = Field(
        ...,
        description="Version string exactly as declared in the manifest.",
    )
    fixed_version: str | None = None
    cve_id: str | None = None
    cvss_score: float | None = Field(default=None, ge=0, le=10)
    owasp_category: str | None = None
    cwe_id: str | None = None
    file_path: str = Field(
        default="",
        description="Manifest the package was declared in, relative to the snapshot root.",
    )


class CodeFinding(BaseModel):
    """A source line matched by one of the code pattern rules."""

    type: CodeVulnerabilityType
    id: int | None = Field(default=None, description="Database id once persisted.")
    severity: SeverityLevel
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    line_number: int = Field(..., ge=1)
    code_snippet: str = Field(default="", max_length=MAX_SNIPPET_LENGTH)
    owasp_category: str
    cwe_id: str
