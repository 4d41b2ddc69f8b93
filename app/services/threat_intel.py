"""Load and validate the threat-intelligence YAML files that drive the scanners."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from app.schemas.threat_intel import ThreatIntel

logger = logging.getLogger(__name__)

KNOWN_VULNERABILITIES_FILE = "known_vulnerabilities.yaml"
SUPPLY_CHAIN_FILE = "supply_chain.yaml"


class ThreatIntelError(Exception):
    """Raised when a threat-intel file is missing, not valid YAML, or does not match the schema."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError as e:
        raise ThreatIntelError(f"Threat-intel file not found: {path}", cause=e) from e
    except (OSError, yaml.YAMLError) as e:
        raise ThreatIntelError(f"Could not read threat-intel file {path}: {e}", cause=e) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ThreatIntelError(f"Threat-intel file {path} must contain a mapping at top level.")
    return data


def load_threat_intel(directory: str | Path) -> ThreatIntel:
    """
    Read known_vulnerabilities.yaml and supply_chain.yaml from directory.

    Raises ThreatIntelError when a file is missing or invalid.
    """
    base = Path(directory)
    known = _read_yaml(base / KNOWN_VULNERABILITIES_FILE)
    supply_chain = _read_yaml(base / SUPPLY_CHAIN_FILE)
    try:
        intel = ThreatIntel.model_validate(
            {"known_vulnerabilities": known, "supply_chain": supply_chain}
        )
    except ValidationError as e:
        raise ThreatIntelError(
            f"Threat-intel data in {base} does not match the expected schema.",
            cause=e,
        ) from e

    advisory_count = sum(
        len(entries)
        for table in intel.known_vulnerabilities.values()
        for entries in table.values()
    )
    logger.info(
        "Threat-intel data loaded",
        extra={
            "threat_intel_dir": str(base),
            "advisory_count": advisory_count,
            "popular_package_count": len(intel.supply_chain.popular_packages),
        },
    )
    return intel


@lru_cache
def get_threat_intel(directory: str) -> ThreatIntel:
    """Cached loader keyed by directory; the data is read once per process."""
    return load_threat_intel(directory)
