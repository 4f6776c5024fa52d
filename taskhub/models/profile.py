"""Profile model"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from taskhub.models.base import BaseModel


class Profile(BaseModel):
    """
    Profile of an application user.
    The profile id is the identity id carried in session tokens.
    """

    __tablename__ = "profiles"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    department = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(50), default="member", nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Relationships
    memberships = relationship(
        "OrganizationMember", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Profile(id={self.id}, email={self.email})>"
