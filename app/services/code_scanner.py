"""Line-by-line regex scanner for common code-level security issues.

This is a textual heuristic: comments and test fixtures containing a pattern
are reported, and constructs spanning several lines are missed.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from app.schemas.findings import (
    CODE_VULNERABILITY_TYPES,
    MAX_SNIPPET_LENGTH,
    CodeFinding,
    CodeVulnerabilityType,
    SeverityLevel,
)
from app.services.file_walker import ScanBudget, iter_source_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryMeta:
    severity: SeverityLevel
    owasp_category: str
    cwe_id: str
    description: str


@dataclass(frozen=True)
class PatternRule:
    category: CodeVulnerabilityType
    pattern: re.Pattern[str]
    title: str


CATEGORY_META: dict[CodeVulnerabilityType, CategoryMeta] = {
    "SECRETS_EXPOSURE": CategoryMeta(
        severity="CRITICAL",
        owasp_category="A07:2021 – Identification and Authentication Failures",
        cwe_id="CWE-798",
        description=(
            "Found hardcoded credentials in source code. This is a critical security risk "
            "as secrets should never be committed to version control."
        ),
    ),
    "SQL_INJECTION": CategoryMeta(
        severity="HIGH",
        owasp_category="A03:2021 – Injection",
        cwe_id="CWE-89",
        description=(
            "SQL query uses string concatenation or interpolation, which may be vulnerable "
            "to SQL injection attacks. Use parameterized queries instead."
        ),
    ),
    "XSS": CategoryMeta(
        severity="HIGH",
        owasp_category="A03:2021 – Injection",
        cwe_id="CWE-79",
        description=(
            "Code uses potentially unsafe DOM manipulation that could lead to XSS attacks. "
            "Always sanitize user input before rendering."
        ),
    ),
    "CRYPTOGRAPHY": CategoryMeta(
        severity="MEDIUM",
        owasp_category="A02:2021 – Cryptographic Failures",
        cwe_id="CWE-327",
        description=(
            "Using weak or outdated cryptographic algorithms. Use modern, secure alternatives "
            "like SHA-256 or bcrypt."
        ),
    ),
    "PATH_TRAVERSAL": CategoryMeta(
        severity="HIGH",
        owasp_category="A01:2021 – Broken Access Control",
        cwe_id="CWE-22",
        description=(
            "File operations use unsanitized user input, which could allow attackers to "
            "access files outside intended directories."
        ),
    ),
    "INSECURE_DESERIALIZATION": CategoryMeta(
        severity="MEDIUM",
        owasp_category="A08:2021 – Software and Data Integrity Failures",
        cwe_id="CWE-502",
        description=(
            "Deserializing untrusted data can lead to remote code execution. Validate and "
            "sanitize input before deserialization."
        ),
    ),
}

_missing_meta = set(CODE_VULNERABILITY_TYPES) - CATEGORY_META.keys()
if _missing_meta:
    raise RuntimeError(f"code categories without metadata: {sorted(_missing_meta)}")


def _rule(category: CodeVulnerabilityType, pattern: str, title: str, flags: int = 0) -> PatternRule:
    return PatternRule(category=category, pattern=re.compile(pattern, flags), title=title)


_I = re.IGNORECASE

PATTERN_RULES: tuple[PatternRule, ...] = (
    # Secrets: assignment-style literals (keywords are case-insensitive)
    _rule("SECRETS_EXPOSURE", r"""(?:password|passwd|pwd)\s*=\s*["']([^"']+)["']""", "Hardcoded Password", _I),
    _rule("SECRETS_EXPOSURE", r"""(?:api[_-]?key|apikey)\s*=\s*["']([^"']+)["']""", "Hardcoded API Key", _I),
    _rule("SECRETS_EXPOSURE", r"""(?:secret[_-]?key|secretkey)\s*=\s*["']([^"']+)["']""", "Hardcoded Secret Key", _I),
    _rule("SECRETS_EXPOSURE", r"""(?:access[_-]?token|accesstoken)\s*=\s*["']([^"']+)["']""", "Hardcoded Access Token", _I),
    _rule("SECRETS_EXPOSURE", r"""(?:private[_-]?key|privatekey)\s*=\s*["']([^"']+)["']""", "Hardcoded Private Key", _I),
    # Secrets: fixed-prefix vendor tokens (case-sensitive)
    _rule("SECRETS_EXPOSURE", r"sk[-_][a-zA-Z0-9]{24,}", "Stripe Secret Key"),
    _rule("SECRETS_EXPOSURE", r"AKIA[0-9A-Z]{16}", "AWS Access Key"),
    _rule("SECRETS_EXPOSURE", r"ghp_[a-zA-Z0-9]{36}", "GitHub Personal Access Token"),
    _rule("SECRETS_EXPOSURE", r"xox[baprs]-[0-9A-Za-z-]{10,}", "Slack Token"),
    _rule("SECRETS_EXPOSURE", r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "Private Key Block"),
    # SQL injection
    _rule("SQL_INJECTION", r"execute\([^)]*\+[^)]*\)", "Potential SQL Injection", _I),
    _rule("SQL_INJECTION", r"query\([^)]*\+[^)]*\)", "Potential SQL Injection", _I),
    _rule("SQL_INJECTION", r"SELECT.*FROM.*WHERE.*\+", "Potential SQL Injection", _I),
    _rule("SQL_INJECTION", r"INSERT.*VALUES.*\+", "Potential SQL Injection", _I),
    _rule("SQL_INJECTION", r"UPDATE.*SET.*\+", "Potential SQL Injection", _I),
    _rule("SQL_INJECTION", r"DELETE.*FROM.*WHERE.*\+", "Potential SQL Injection", _I),
    _rule("SQL_INJECTION", r"db\.run\([^)]*\$\{[^}]+\}", "Potential SQL Injection", _I),
    # XSS and dynamic evaluation
    _rule("XSS", r"dangerouslySetInnerHTML", "Potential Cross-Site Scripting (XSS)", _I),
    _rule("XSS", r"innerHTML\s*=", "Potential Cross-Site Scripting (XSS)", _I),
    _rule("XSS", r"document\.write\(", "Potential Cross-Site Scripting (XSS)", _I),
    _rule("XSS", r"\.html\([^)]*\+", "Potential Cross-Site Scripting (XSS)", _I),
    _rule("XSS", r"eval\(", "Potential Cross-Site Scripting (XSS)", _I),
    # Weak cryptography
    _rule("CRYPTOGRAPHY", r"""createHash\(['"]md5['"]\)""", "Weak Hash Algorithm (MD5)", _I),
    _rule("CRYPTOGRAPHY", r"""createHash\(['"]sha1['"]\)""", "Weak Hash Algorithm (SHA1)", _I),
    _rule("CRYPTOGRAPHY", r"""createCipher\(['"]des['"]\)""", "Weak Encryption Algorithm (DES)", _I),
    _rule("CRYPTOGRAPHY", r"hashlib\.md5\(", "Weak Hash Algorithm (MD5)"),
    _rule("CRYPTOGRAPHY", r"hashlib\.sha1\(", "Weak Hash Algorithm (SHA1)"),
    _rule("CRYPTOGRAPHY", r"Math\.random\(\)", "Insecure Random Number Generator", _I),
    # Path traversal
    _rule("PATH_TRAVERSAL", r"readFile\([^)]*req\.[^)]*\)", "Potential Path Traversal", _I),
    _rule("PATH_TRAVERSAL", r"readFileSync\([^)]*req\.[^)]*\)", "Potential Path Traversal", _I),
    _rule("PATH_TRAVERSAL", r"open\([^)]*request\.[^)]*\)", "Potential Path Traversal", _I),
    # Insecure deserialization
    _rule("INSECURE_DESERIALIZATION", r"JSON\.parse\([^)]*req\.[^)]*\)", "Potential Insecure Deserialization", _I),
    _rule("INSECURE_DESERIALIZATION", r"pickle\.loads\(", "Potential Insecure Deserialization", _I),
    _rule("INSECURE_DESERIALIZATION", r"unserialize\(", "Potential Insecure Deserialization", _I),
    _rule("INSECURE_DESERIALIZATION", r"yaml\.load\(", "Potential Insecure Deserialization", _I),
)


def _snippet(line: str) -> str:
    return line.strip()[:MAX_SNIPPET_LENGTH]


def scan_lines(lines: list[str], relative_path: str) -> list[CodeFinding]:
    """Apply every rule to every line; one finding per (line, matching rule)."""
    findings: list[CodeFinding] = []
    for rule in PATTERN_RULES:
        meta = CATEGORY_META[rule.category]
        for index, line in enumerate(lines):
            if not rule.pattern.search(line):
                continue
            findings.append(
                CodeFinding(
                    type=rule.category,
                    severity=meta.severity,
                    title=rule.title,
                    description=meta.description,
                    file_path=relative_path,
                    line_number=index + 1,
                    code_snippet=_snippet(line),
                    owasp_category=meta.owasp_category,
                    cwe_id=meta.cwe_id,
                )
            )
    return findings


def scan_file(path: Path, root: Path, max_bytes: int) -> list[CodeFinding]:
    """Scan a single file. Oversized, unreadable, or non-UTF-8 files yield no findings."""
    try:
        if path.stat().st_size > max_bytes:
            logger.debug("Skipping oversized file %s", path)
            return []
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping unreadable file %s: %s", path, e)
        return []
    relative_path = path.relative_to(root).as_posix()
    return scan_lines(content.split("\n"), relative_path)


def scan_repository(root: str | Path, budget: ScanBudget) -> list[CodeFinding]:
    """Walk root and scan every source file, checking the budget between files."""
    base = Path(root)
    findings: list[CodeFinding] = []
    file_count = 0
    for path in iter_source_files(base, budget):
        budget.check()
        findings.extend(scan_file(path, base, budget.max_file_bytes))
        file_count += 1
    logger.info(
        "Code pattern scan finished",
        extra={"root": str(base), "files_scanned": file_count, "finding_count": len(findings)},
    )
    return findings
