"""Resolve a package's declared license from its public registry (npm, PyPI)."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx

from app.schemas.dependencies import DeclaredDependency

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

LicenseLookup = Callable[[DeclaredDependency], Awaitable[str | None]]


async def no_license_lookup(dep: DeclaredDependency) -> str | None:
    """Default lookup: license information is not resolved."""
    return None


def _license_from_npm(body: dict[str, Any]) -> str | None:
    value = body.get("license")
    if isinstance(value, dict):
        value = value.get("type")
    return value.strip() if isinstance(value, str) and value.strip() else None


def _license_from_pypi(body: dict[str, Any]) -> str | None:
    info = body.get("info")
    if not isinstance(info, dict):
        return None
    value = info.get("license_expression") or info.get("license")
    if not isinstance(value, str) or not value.strip():
        return None
    # Some projects paste the full license text here; keep the first line only.
    return value.strip().splitlines()[0][:255]


class RegistryLicenseLookup:
    """
    Looks up licenses over HTTP. npm and pip are supported; other managers resolve to None.

    Any transport error, non-200 status, or unexpected body yields None so that a
    registry outage never fails a scan.
    """

    def __init__(self, settings: "Settings", client: httpx.AsyncClient | None = None) -> None:
        self._npm_url = settings.NPM_REGISTRY_URL.rstrip("/")
        self._pypi_url = settings.PYPI_BASE_URL.rstrip("/")
        self._timeout = httpx.Timeout(settings.REGISTRY_REQUEST_TIMEOUT_SEC)
        self._client = client

    def _url_for(self, dep: DeclaredDependency) -> str | None:
        if dep.manager == "npm":
            return f"{self._npm_url}/{dep.name}"
        if dep.manager == "pip":
            return f"{self._pypi_url}/pypi/{dep.name}/json"
        return None

    async def _get(self, url: str) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url)

    async def __call__(self, dep: DeclaredDependency) -> str | None:
        url = self._url_for(dep)
        if url is None:
            return None
        try:
            response = await self._get(url)
        except httpx.HTTPError as e:
            logger.info(
                "License lookup failed",
                extra={"package": dep.name, "manager": dep.manager, "error": str(e)},
            )
            return None
        if response.status_code != 200:
            logger.info(
                "License lookup returned non-200",
                extra={"package": dep.name, "manager": dep.manager, "status": response.status_code},
            )
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        if dep.manager == "npm":
            return _license_from_npm(body)
        return _license_from_pypi(body)


@asynccontextmanager
async def open_license_lookup(settings: "Settings") -> AsyncIterator[LicenseLookup]:
    """
    Lookup to use for one scan.

    With LICENSE_LOOKUP_ENABLED the registry lookup shares a single
    httpx.AsyncClient, closed when the scan leaves the context; otherwise the
    offline no-op is yielded.
    """
    if not settings.LICENSE_LOOKUP_ENABLED:
        yield no_license_lookup
        return
    timeout = httpx.Timeout(settings.REGISTRY_REQUEST_TIMEOUT_SEC)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield RegistryLicenseLookup(settings, client=client)
