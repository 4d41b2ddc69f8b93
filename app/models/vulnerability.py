"""ORM model for persisted findings (dependency and code)."""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base


class Vulnerability(Base):
    """
    One finding from a scan. Immutable except for resolved, which reviewers toggle.
    """

    __tablename__ = "vulnerabilities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    security_report_id = Column(
        Integer,
        ForeignKey("security_reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = Column(String(64), nullable=False, index=True)
    severity = Column(String(32), nullable=False, index=True)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=False)
    file_path = Column(String(2048), nullable=True)
    line_number = Column(Integer, nullable=True)
    code_snippet = Column(Text, nullable=True)
    cve_id = Column(String(255), nullable=True)
    cvss_score = Column(Float, nullable=True)
    package_name = Column(String(1024), nullable=True)
    package_version = Column(String(255), nullable=True)
    fixed_version = Column(String(255), nullable=True)
    owasp_category = Column(String(255), nullable=True)
    cwe_id = Column(String(64), nullable=True)
    resolved = Column(Boolean, nullable=False, default=False)

    security_report = relationship("SecurityReport", back_populates="vulnerabilities")
