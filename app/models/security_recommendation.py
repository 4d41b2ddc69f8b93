"""ORM model for remediation recommendations."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, JSONList


class SecurityRecommendation(Base):
    """
    One remediation recommendation. Immutable except for implemented, which reviewers toggle.

    steps and related_vulnerability_ids are stored as JSON arrays.
    """

    __tablename__ = "security_recommendations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    security_report_id = Column(
        Integer,
        ForeignKey("security_reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    severity = Column(String(32), nullable=False)
    category = Column(String(255), nullable=False)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=False)
    steps = Column(JSONList, nullable=False, default=list)
    related_vulnerability_ids = Column(JSONList, nullable=False, default=list)
    estimated_effort = Column(String(255), nullable=True)
    priority = Column(Integer, nullable=False, index=True)
    implemented = Column(Boolean, nullable=False, default=False)

    security_report = relationship("SecurityReport", back_populates="recommendations")
