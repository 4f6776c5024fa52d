"""Task model"""

import enum

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, String, Text, Uuid
from taskhub.models.base import BaseModel


class TaskStatus(str, enum.Enum):
    """Task status, one kanban column each"""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"


class TaskPriority(str, enum.Enum):
    """Task priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(BaseModel):
    """
    Task model.
    Tasks belong to an organization and may link to a project, a department
    and an assignee.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "status IN ('todo', 'in_progress', 'in_review', 'done')", name="ck_tasks_status"
        ),
        CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')", name="ck_tasks_priority"
        ),
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default=TaskStatus.TODO.value, nullable=False, index=True)
    priority = Column(String(20), default=TaskPriority.LOW.value, nullable=False)
    due_date = Column(Date, nullable=True)
    project_id = Column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True, index=True
    )
    department_id = Column(
        Uuid(as_uuid=True), ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True, index=True
    )
    assignee_id = Column(
        Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True, index=True
    )
    creator_id = Column(
        Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )

    def __repr__(self):
        return f"<Task(id={self.id}, title={self.title}, status={self.status})>"
