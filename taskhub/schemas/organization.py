"""Organization, department and member schemas"""

from typing import Optional
from uuid import UUID
from pydantic import EmailStr, Field, field_validator

from taskhub.models.organization import MemberRole
from taskhub.schemas.common import FormModel


class OrganizationForm(FormModel):
    """Organization create/edit form"""
    name: str = Field(..., max_length=255, description="Organization name")
    description: Optional[str] = Field(None, description="Organization description")
    logo_url: Optional[str] = Field(None, max_length=1024, description="Logo URL")


class DepartmentForm(FormModel):
    """New department form"""
    name: str = Field(..., max_length=255, description="Department name")
    description: Optional[str] = Field(None, description="Department description")
    parent_id: Optional[UUID] = Field(None, description="Parent department")


class MemberRoleForm(FormModel):
    """Role change form; owner is not assignable from the page"""
    role: MemberRole = Field(default=MemberRole.MEMBER, description="Member role")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: MemberRole) -> MemberRole:
        """Only admin and member can be assigned"""
        if v == MemberRole.OWNER:
            raise ValueError("Role must be admin or member")
        return v


class MemberInviteForm(MemberRoleForm):
    """Add-member form"""
    email: EmailStr = Field(..., description="Email of an existing user")
