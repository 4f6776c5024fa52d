"""Profile schemas"""

from typing import Optional
from pydantic import Field

from taskhub.schemas.common import FormModel


class ProfileForm(FormModel):
    """Own profile form"""
    full_name: Optional[str] = Field(None, max_length=255, description="Full name")
    department: Optional[str] = Field(None, max_length=255, description="Department (free text)")
    phone: Optional[str] = Field(None, max_length=50, description="Phone number")
