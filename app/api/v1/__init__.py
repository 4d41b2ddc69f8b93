"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import findings, health, reports, scans

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(reports.router, tags=["reports"])
router.include_router(scans.router, tags=["scans"])
router.include_router(findings.router, tags=["findings"])
