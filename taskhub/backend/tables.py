"""Table registry, insert hooks and row-level access rules for the backend client"""

import logging
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Type

from sqlalchemy import Column, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.backend.errors import BackendError
from taskhub.models import (
    Department,
    MemberRole,
    Organization,
    OrganizationMember,
    Profile,
    Project,
    Task,
)
from taskhub.models.base import BaseModel
from taskhub.schemas.auth import Identity

logger = logging.getLogger(__name__)

TABLES: Dict[str, Type[BaseModel]] = {
    "profiles": Profile,
    "organizations": Organization,
    "organization_members": OrganizationMember,
    "departments": Department,
    "projects": Project,
    "tasks": Task,
}

# Columns never returned or written through the client
HIDDEN_COLUMNS: Dict[str, FrozenSet[str]] = {
    "profiles": frozenset({"password_hash"}),
}


def resolve_table(table: str) -> Type[BaseModel]:
    """Return the model for a table name"""
    try:
        return TABLES[table]
    except KeyError:
        raise BackendError(f'relation "{table}" does not exist') from None


def visible_columns(table: str) -> List[str]:
    """Column names of a table, minus hidden ones, in declaration order"""
    model = resolve_table(table)
    hidden = HIDDEN_COLUMNS.get(table, frozenset())
    return [c.name for c in model.__table__.columns if c.name not in hidden]


def get_column(table: str, name: str) -> Column:
    """Return a visible column or raise"""
    model = resolve_table(table)
    if name in HIDDEN_COLUMNS.get(table, frozenset()) or name not in model.__table__.c:
        raise BackendError(f"column {table}.{name} does not exist")
    return model.__table__.c[name]


async def add_owner_membership(
    session: AsyncSession, rows: List[Any], identity: Optional[Identity]
) -> None:
    """Make the creator of an organization its owner"""
    if identity is None:
        return
    for organization in rows:
        session.add(
            OrganizationMember(
                organization_id=organization.id,
                user_id=identity.id,
                role=MemberRole.OWNER.value,
            )
        )
        logger.info(f"Added {identity.email} as owner of organization {organization.id}")


InsertHook = Callable[[AsyncSession, List[Any], Optional[Identity]], Awaitable[None]]

AFTER_INSERT: Dict[str, InsertHook] = {
    "organizations": add_owner_membership,
}


# Row-level access rules. Each policy returns extra WHERE conditions for a
# table given the identity the client is bound to. Read policies filter what
# select, count and embeds can see; write policies filter which rows update
# and delete can touch and must also hold for rows after insert or update.
# Tables without an entry are visible to every signed-in user.

RowPolicy = Callable[[Identity], List[Any]]


def member_organization_ids(identity: Identity):
    """Organizations the identity belongs to"""
    return (
        select(OrganizationMember.organization_id)
        .where(OrganizationMember.user_id == identity.id)
        .correlate(None)
    )


def owned_organization_ids(identity: Identity):
    """Organizations the identity owns"""
    return (
        select(OrganizationMember.organization_id)
        .where(
            OrganizationMember.user_id == identity.id,
            OrganizationMember.role == MemberRole.OWNER.value,
        )
        .correlate(None)
    )


READ_POLICIES: Dict[str, RowPolicy] = {
    "organizations": lambda identity: [Organization.id.in_(member_organization_ids(identity))],
    "organization_members": lambda identity: [
        OrganizationMember.organization_id.in_(member_organization_ids(identity))
    ],
    "departments": lambda identity: [Department.organization_id.in_(member_organization_ids(identity))],
    "tasks": lambda identity: [Task.organization_id.in_(member_organization_ids(identity))],
}

WRITE_POLICIES: Dict[str, RowPolicy] = {
    "profiles": lambda identity: [Profile.id == identity.id],
    "organizations": lambda identity: [Organization.id.in_(owned_organization_ids(identity))],
    "organization_members": lambda identity: [
        OrganizationMember.organization_id.in_(owned_organization_ids(identity))
    ],
    "departments": lambda identity: [Department.organization_id.in_(owned_organization_ids(identity))],
    "tasks": lambda identity: [Task.organization_id.in_(member_organization_ids(identity))],
}


def policy_conditions(
    policies: Dict[str, RowPolicy], table: str, identity: Optional[Identity]
) -> List[Any]:
    """
    WHERE conditions a client bound to identity must add for table.

    A client without an identity is a trusted system client and is not
    restricted.
    """
    if identity is None:
        return []
    policy = policies.get(table)
    return policy(identity) if policy else []
