"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Service status plus the two dependencies a scan cannot run without."""

    status: Literal["ok", "degraded"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether a trivial query against the database succeeded",
    )
    threat_intel: Literal["loaded", "unavailable"] = Field(
        description="Whether the vulnerability and supply-chain data files load and validate",
    )
    version_match_mode: Literal["semver", "substring"] = Field(
        description="How declared versions are compared against affected ranges",
    )
