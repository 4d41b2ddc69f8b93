"""ORM model for one scan run of a repository (the aggregate root of its findings)."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.models.base import Base

REPORT_STATUSES = ("PENDING", "SCANNING", "COMPLETED", "FAILED")


class SecurityReport(Base):
    """
    One report per triggered scan; reports accumulate and the newest by scan_date is current.

    Owns its vulnerabilities, dependency risks, and recommendations; deleting a
    report deletes all three.
    """

    __tablename__ = "security_reports"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in REPORT_STATUSES) + ")",
            name="ck_security_reports_status",
        ),
        CheckConstraint(
            "risk_score >= 0 AND risk_score <= 100",
            name="ck_security_reports_risk_score",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    repo_id = Column(
        Integer,
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    commit_sha = Column(String(255), nullable=False, default="")
    status = Column(String(32), nullable=False, default="PENDING", index=True)
    risk_score = Column(Integer, nullable=False, default=0)
    total_vulnerabilities = Column(Integer, nullable=False, default=0)
    critical_count = Column(Integer, nullable=False, default=0)
    high_count = Column(Integer, nullable=False, default=0)
    medium_count = Column(Integer, nullable=False, default=0)
    low_count = Column(Integer, nullable=False, default=0)
    scan_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    # Milliseconds from SCANNING to COMPLETED/FAILED.
    scan_duration = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    repository = relationship("Repository", back_populates="security_reports")
    vulnerabilities = relationship(
        "Vulnerability",
        back_populates="security_report",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    dependency_risks = relationship(
        "DependencyRisk",
        back_populates="security_report",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    recommendations = relationship(
        "SecurityRecommendation",
        back_populates="security_report",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
