"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.dependency_risk import DependencyRisk
from app.models.repository import Repository
from app.models.security_recommendation import SecurityRecommendation
from app.models.security_report import REPORT_STATUSES, SecurityReport
from app.models.vulnerability import Vulnerability

__all__ = [
    "Base",
    "DependencyRisk",
    "REPORT_STATUSES",
    "Repository",
    "SecurityRecommendation",
    "SecurityReport",
    "Vulnerability",
]
