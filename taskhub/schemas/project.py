"""Project schemas"""

from datetime import date
from typing import Optional
from pydantic import Field

from taskhub.models.project import ProjectStatus
from taskhub.schemas.common import FormModel


class ProjectForm(FormModel):
    """Project create/edit form"""
    name: str = Field(..., max_length=255, description="Project name")
    description: Optional[str] = Field(None, description="Project description")
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING, description="Project status")
    start_date: Optional[date] = Field(None, description="Planned start")
    end_date: Optional[date] = Field(None, description="Planned end")
    budget: Optional[float] = Field(None, ge=0, allow_inf_nan=False, description="Budget")
