"""Organization, membership and department models"""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from taskhub.models.base import BaseModel


class MemberRole(str, enum.Enum):
    """Role of a member inside an organization"""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class Organization(BaseModel):
    """
    Organization model representing a company or team.
    Owns departments and members.
    """

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    logo_url = Column(String(1024), nullable=True)

    # Relationships
    members = relationship(
        "OrganizationMember", back_populates="organization", cascade="all, delete-orphan"
    )
    departments = relationship(
        "Department", back_populates="organization", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Organization(id={self.id}, name={self.name})>"


class OrganizationMember(BaseModel):
    """Links a profile to an organization with a role"""

    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_organization_members_org_user"),
        CheckConstraint(
            "role IN ('owner', 'admin', 'member')", name="ck_organization_members_role"
        ),
    )

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    role = Column(String(20), default=MemberRole.MEMBER.value, nullable=False)
    title = Column(String(255), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="members")
    user = relationship("Profile", back_populates="memberships")

    def __repr__(self):
        return f"<OrganizationMember(id={self.id}, role={self.role})>"


class Department(BaseModel):
    """
    Department inside an organization.
    Departments form a tree through parent_id; deleting a parent removes its children.
    """

    __tablename__ = "departments"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(
        Uuid(as_uuid=True), ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=True, index=True
    )

    # Relationships
    organization = relationship("Organization", back_populates="departments")

    def __repr__(self):
        return f"<Department(id={self.id}, name={self.name})>"
