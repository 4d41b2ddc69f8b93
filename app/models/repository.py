"""ORM model mirroring the repositories that security reports are attached to."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base


class Repository(Base):
    """
    A code repository belonging to a project.

    Rows are created by the project/ingestion side; this service only reads
    project_id to answer project-level report queries.
    """

    __tablename__ = "repositories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(255), nullable=False, index=True)
    name = Column(String(1024), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    security_reports = relationship(
        "SecurityReport",
        back_populates="repository",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
