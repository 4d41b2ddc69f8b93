"""Health check endpoint: database connectivity and threat-intel availability."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.threat_intel import ThreatIntelError, get_threat_intel

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Return service health. Status is degraded when the database is unreachable
    or the threat-intel files fail to load. Used by load balancers and monitoring.
    """
    db_ok = check_db_connected(db)
    try:
        get_threat_intel(settings.THREAT_INTEL_DIR)
        intel_ok = True
    except ThreatIntelError as e:
        logger.warning("Threat intel unavailable: %s", e.message)
        intel_ok = False

    return HealthResponse(
        status="ok" if db_ok and intel_ok else "degraded",
        environment=settings.APP_ENV,
        database="connected" if db_ok else "disconnected",
        threat_intel="loaded" if intel_ok else "unavailable",
        version_match_mode=settings.VERSION_MATCH_MODE,
    )
