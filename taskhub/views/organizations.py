"""Organization pages: list, create, settings"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

from taskhub.backend import BackendError, Order, Row, eq, in_
from taskhub.models.organization import MemberRole
from taskhub.schemas.organization import (
    DepartmentForm,
    MemberInviteForm,
    MemberRoleForm,
    OrganizationForm,
)
from taskhub.views.resources import ViewController
from taskhub.views.state import Navigate, RecordNotFound

logger = logging.getLogger(__name__)

OWNER_ONLY = "Only the organization owner can manage its settings"
FOREIGN_PARENT = "Parent department must belong to this organization"


def settings_url(rows: List[Row]) -> str:
    """Where a newly created organization lands"""
    return f"/organizations/{rows[0]['id']}/settings"


class OrganizationListController(ViewController):
    """Organizations the current user belongs to, with member and department counts"""

    view_name = "organizations"

    async def fetch(self) -> List[Dict[str, Any]]:
        memberships = await self.backend.select(
            "organization_members",
            "organization_id, role",
            filters=[eq("user_id", str(self.identity.id))],
        )
        if not memberships:
            return []

        roles = {str(m["organization_id"]): m["role"] for m in memberships}
        rows = await self.backend.select(
            "organizations",
            "*, organization_members(id), departments(id)",
            filters=[in_("id", list(roles))],
            order=[Order("name")],
        )
        organizations = []
        for row in rows:
            row["role"] = roles.get(str(row["id"]))
            row["member_count"] = len(row.pop("organization_members"))
            row["department_count"] = len(row.pop("departments"))
            organizations.append(row)
        return organizations


class OrganizationCreateController(ViewController):
    """
    New organization form.

    The backend makes the creator the owner; the page then moves to the
    settings of the new organization.
    """

    view_name = "organizations"

    def __init__(self, backend, identity, lifetime=None):
        super().__init__(backend, identity, lifetime)
        self.values: Dict[str, str] = OrganizationForm.defaults()

    async def fetch(self) -> Dict[str, Any]:
        return {}

    async def submit(self, raw: Mapping[str, Any]) -> Optional[Navigate]:
        self.values = {**self.values, **{k: v for k, v in raw.items() if isinstance(v, str)}}
        form = self.parse(OrganizationForm, raw)
        if form is None:
            return None
        record = form.to_record()
        return await self.mutate(
            lambda: self.backend.insert("organizations", record),
            on_success=settings_url,
        )


class OrganizationSettingsController(ViewController):
    """
    Organization details, departments and members.

    Management is available to the owner only: the page hides the forms for
    other roles and every mutation checks the role before issuing a call.
    """

    view_name = "organization_settings"

    def __init__(self, backend, identity, organization_id: Union[str, UUID], lifetime=None):
        super().__init__(backend, identity, lifetime)
        self.organization_id = str(organization_id)
        self.values: Dict[str, str] = OrganizationForm.defaults()

    async def fetch(self) -> Dict[str, Any]:
        organization = await self.backend.select_one(
            "organizations", "*", filters=[eq("id", self.organization_id)]
        )
        if organization is None:
            raise RecordNotFound(self.organization_id)

        membership = await self.backend.select_one(
            "organization_members",
            "role",
            filters=[eq("organization_id", self.organization_id), eq("user_id", str(self.identity.id))],
        )
        departments = await self.backend.select(
            "departments",
            "*, parent:parent_id(name)",
            filters=[eq("organization_id", self.organization_id)],
            order=[Order("name")],
        )
        members = await self.backend.select(
            "organization_members",
            "*, profiles:user_id(email, full_name)",
            filters=[eq("organization_id", self.organization_id)],
            order=[Order("created_at")],
        )
        return {
            "organization": organization,
            "role": membership["role"] if membership else None,
            "departments": departments,
            "members": members,
        }

    def apply(self, data: Dict[str, Any]) -> None:
        super().apply(data)
        self.values = OrganizationForm.initial(data["organization"])

    @property
    def is_owner(self) -> bool:
        return bool(self.state.data) and self.state.data["role"] == MemberRole.OWNER.value

    async def _authorize(self) -> bool:
        if self.state.data is None:
            await self.load()
        if self.state.data is None:
            return False
        if not self.is_owner:
            self.fail(OWNER_ONLY, "authorize")
            return False
        return True

    def _member(self, member_id: str) -> Optional[Row]:
        for member in self.state.data["members"]:
            if str(member["id"]) == member_id:
                return member
        return None

    async def update_organization(self, raw: Mapping[str, Any]) -> None:
        if not await self._authorize():
            return
        self.values = {**self.values, **{k: v for k, v in raw.items() if isinstance(v, str)}}
        form = self.parse(OrganizationForm, raw)
        if form is None:
            return
        patch = form.to_record()
        await self.mutate(
            lambda: self.backend.update("organizations", patch, [eq("id", self.organization_id)]),
            message="Organization updated successfully",
        )

    async def add_department(self, raw: Mapping[str, Any]) -> None:
        if not await self._authorize():
            return
        form = self.parse(DepartmentForm, raw)
        if form is None:
            return
        if form.parent_id is not None:
            own = {str(d["id"]) for d in self.state.data["departments"]}
            if str(form.parent_id) not in own:
                self.fail(FOREIGN_PARENT, "validate")
                return
        record = {**form.to_record(), "organization_id": self.organization_id}
        await self.mutate(
            lambda: self.backend.insert("departments", record),
            message="Department added successfully",
        )

    async def delete_department(self, department_id: str, confirmed: bool) -> None:
        """Delete a department (and its sub-departments); nothing is issued unless confirmed"""
        if not confirmed or not await self._authorize():
            return
        await self.mutate(
            lambda: self.backend.delete(
                "departments",
                [eq("id", department_id), eq("organization_id", self.organization_id)],
            ),
            message="Department deleted successfully",
        )

    async def add_member(self, raw: Mapping[str, Any]) -> None:
        """Add an existing user by email with the admin or member role"""
        if not await self._authorize():
            return
        form = self.parse(MemberInviteForm, raw)
        if form is None:
            return

        try:
            profile = await self.backend.select_one(
                "profiles", "id", filters=[eq("email", form.email.lower())]
            )
        except BackendError as exc:
            self.fail(exc.message, "mutate")
            return
        if profile is None:
            self.fail(f"No user found with email {form.email}", "mutate")
            return

        record = {
            "organization_id": self.organization_id,
            "user_id": str(profile["id"]),
            "role": form.role.value,
        }
        await self.mutate(
            lambda: self.backend.insert("organization_members", record),
            message="Member added successfully",
        )

    async def change_member_role(self, member_id: str, raw: Mapping[str, Any]) -> None:
        if not await self._authorize():
            return
        member = self._member(member_id)
        if member is None:
            self.fail("Member not found", "mutate")
            return
        if member["role"] == MemberRole.OWNER.value:
            self.fail("The owner's role cannot be changed", "mutate")
            return
        form = self.parse(MemberRoleForm, raw)
        if form is None:
            return
        await self.mutate(
            lambda: self.backend.update(
                "organization_members",
                {"role": form.role.value},
                [eq("id", member_id), eq("organization_id", self.organization_id)],
            ),
            message="Member role updated successfully",
        )

    async def remove_member(self, member_id: str, confirmed: bool) -> None:
        """Remove a member; nothing is issued unless confirmed"""
        if not confirmed or not await self._authorize():
            return
        member = self._member(member_id)
        if member is None:
            self.fail("Member not found", "mutate")
            return
        if member["role"] == MemberRole.OWNER.value:
            self.fail("The owner cannot be removed", "mutate")
            return
        await self.mutate(
            lambda: self.backend.delete(
                "organization_members",
                [eq("id", member_id), eq("organization_id", self.organization_id)],
            ),
            message="Member removed successfully",
        )
