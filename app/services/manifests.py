"""Read package manifests at a snapshot root into a flat list of declared dependencies."""

import json
import logging
import re
from collections.abc import Callable
from pathlib import Path

from app.schemas.dependencies import DeclaredDependency, PackageManager

logger = logging.getLogger(__name__)

# name, optional operator, optional version (e.g. django==4.2.0, flask>=2.0, requests)
_REQUIREMENT_LINE = re.compile(r"^([A-Za-z0-9_-]+)([>=<]+)?([\d.]+)?")
# gem 'rails', '~> 7.0.4'
_GEM_LINE = re.compile(r"""^\s*gem\s+["']([^"']+)["'](?:\s*,\s*["']([^"']+)["'])?""")

# Composer platform requirements are not packages.
_COMPOSER_PLATFORM_PREFIXES = ("ext-", "lib-")


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable manifest %s: %s", path, e)
        return None


def _load_json_object(path: Path) -> dict | None:
    content = _read_text(path)
    if content is None:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning("Skipping malformed manifest %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping manifest %s: top-level value is not an object", path)
        return None
    return data


def _dependency_section(
    data: dict,
    key: str,
    manager: PackageManager,
    manifest: str,
) -> list[DeclaredDependency]:
    section = data.get(key)
    if not isinstance(section, dict):
        return []
    deps: list[DeclaredDependency] = []
    for name, version in section.items():
        if not isinstance(name, str) or not name.strip():
            continue
        deps.append(
            DeclaredDependency(
                name=name.strip(),
                version_spec=version.strip() if isinstance(version, str) else "",
                manager=manager,
                manifest_path=manifest,
            )
        )
    return deps


def read_package_json(path: Path) -> list[DeclaredDependency]:
    """dependencies and devDependencies from package.json (all direct)."""
    data = _load_json_object(path)
    if data is None:
        return []
    return _dependency_section(data, "dependencies", "npm", path.name) + _dependency_section(
        data, "devDependencies", "npm", path.name
    )


def read_requirements_txt(path: Path) -> list[DeclaredDependency]:
    """One dependency per requirement line; comments and pip options are ignored."""
    content = _read_text(path)
    if content is None:
        return []
    deps: list[DeclaredDependency] = []
    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#") or trimmed.startswith("-"):
            continue
        match = _REQUIREMENT_LINE.match(trimmed)
        if not match:
            continue
        name, _, version = match.groups()
        deps.append(
            DeclaredDependency(
                name=name,
                version_spec=version or "",
                manager="pip",
                manifest_path=path.name,
            )
        )
    return deps


def read_gemfile(path: Path) -> list[DeclaredDependency]:
    content = _read_text(path)
    if content is None:
        return []
    deps: list[DeclaredDependency] = []
    for line in content.splitlines():
        match = _GEM_LINE.match(line)
        if not match:
            continue
        name, constraint = match.groups()
        deps.append(
            DeclaredDependency(
                name=name.strip(),
                version_spec=(constraint or "").strip(),
                manager="bundler",
                manifest_path=path.name,
            )
        )
    return deps


def read_composer_json(path: Path) -> list[DeclaredDependency]:
    """require and require-dev from composer.json, minus php and extension requirements."""
    data = _load_json_object(path)
    if data is None:
        return []
    deps = _dependency_section(data, "require", "composer", path.name) + _dependency_section(
        data, "require-dev", "composer", path.name
    )
    return [
        d
        for d in deps
        if d.name.lower() != "php" and not d.name.lower().startswith(_COMPOSER_PLATFORM_PREFIXES)
    ]


MANIFEST_READERS: dict[str, Callable[[Path], list[DeclaredDependency]]] = {
    "package.json": read_package_json,
    "requirements.txt": read_requirements_txt,
    "Gemfile": read_gemfile,
    "composer.json": read_composer_json,
}


def read_manifests(root: str | Path) -> list[DeclaredDependency]:
    """
    Parse every known manifest present at root.

    Missing, unreadable, or malformed manifests are skipped; the result may be empty.
    """
    base = Path(root)
    dependencies: list[DeclaredDependency] = []
    for filename, reader in MANIFEST_READERS.items():
        path = base / filename
        if not path.is_file():
            continue
        found = reader(path)
        logger.debug("Read %s dependencies from %s", len(found), path)
        dependencies.extend(found)
    return dependencies
