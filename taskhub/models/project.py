"""Project model"""

import enum

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Numeric, String, Text, Uuid
from taskhub.models.base import BaseModel


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status"""
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class Project(BaseModel):
    """
    Project model.
    A project is owned by the manager who created it.
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "status IN ('planning', 'in_progress', 'completed', 'on_hold')",
            name="ck_projects_status",
        ),
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(50), default=ProjectStatus.PLANNING.value, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    budget = Column(Numeric(14, 2, asdecimal=False), nullable=True)
    manager_id = Column(
        Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name={self.name}, status={self.status})>"
