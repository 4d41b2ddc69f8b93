"""ORM model for per-package supply-chain risk assessments."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base


class DependencyRisk(Base):
    """Supply-chain assessment of one declared package in one scan."""

    __tablename__ = "dependency_risks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    security_report_id = Column(
        Integer,
        ForeignKey("security_reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    package_name = Column(String(1024), nullable=False)
    package_version = Column(String(255), nullable=False)
    package_manager = Column(String(32), nullable=False)
    is_deprecated = Column(Boolean, nullable=False, default=False)
    has_vulnerabilities = Column(Boolean, nullable=False, default=False)
    license = Column(String(255), nullable=True)
    license_risk = Column(String(32), nullable=False, default="LOW")
    direct_dependency = Column(Boolean, nullable=False, default=True)
    dependency_depth = Column(Integer, nullable=False, default=0)
    suspicious_score = Column(Integer, nullable=False, default=0)
    risk_level = Column(String(32), nullable=False, default="LOW")

    security_report = relationship("SecurityReport", back_populates="dependency_risks")
