"""Task schemas"""

from datetime import date
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from taskhub.models.task import TaskPriority, TaskStatus
from taskhub.schemas.common import FormModel


class TaskForm(FormModel):
    """Task create/edit form"""
    title: str = Field(..., max_length=255, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(default=TaskPriority.LOW, description="Task priority")
    due_date: Optional[date] = Field(None, description="Due date")
    project_id: Optional[UUID] = Field(None, description="Linked project")
    department_id: Optional[UUID] = Field(None, description="Linked department")
    assignee_id: Optional[UUID] = Field(None, description="Assigned user")
    organization_id: UUID = Field(..., description="Owning organization")


class TaskFilters(FormModel):
    """Task list filters (query string)"""
    search: Optional[str] = Field(None, description="Substring of the title")
    status: Optional[TaskStatus] = Field(None, description="Status equality filter")
    priority: Optional[TaskPriority] = Field(None, description="Priority equality filter")


class BoardMove(BaseModel):
    """Kanban drop event"""
    task_id: UUID = Field(..., description="Dragged task")
    status: TaskStatus = Field(..., description="Destination column")


class BoardMoveResponse(BaseModel):
    """Outcome of a kanban drop"""
    ok: bool
    task_id: UUID
    status: Optional[TaskStatus] = Field(None, description="Status after the move (previous one when rolled back)")
    error: Optional[str] = None
