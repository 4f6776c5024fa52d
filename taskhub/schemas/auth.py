"""Authentication and identity schemas"""

from pydantic import BaseModel, EmailStr, Field
from uuid import UUID


class LoginForm(BaseModel):
    """Login form schema"""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class Identity(BaseModel):
    """The signed-in user as seen by pages"""
    id: UUID = Field(..., description="Profile UUID")
    email: str = Field(..., description="User email")

    class Config:
        from_attributes = True


class AuthSession(BaseModel):
    """Result of a successful sign-in"""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration in seconds")
    user: Identity = Field(..., description="Signed-in user")
