"""Database models package"""

from taskhub.models.base import BaseModel
from taskhub.models.profile import Profile
from taskhub.models.organization import Organization, OrganizationMember, Department, MemberRole
from taskhub.models.project import Project, ProjectStatus
from taskhub.models.task import Task, TaskStatus, TaskPriority

# Export all models
__all__ = [
    "BaseModel",
    "Profile",
    "Organization",
    "OrganizationMember",
    "Department",
    "MemberRole",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
]
