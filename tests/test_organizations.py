"""Tests for organization list, create and settings"""

import uuid

import pytest
import pytest_asyncio

from taskhub.backend import BackendClient, eq
from taskhub.models import Department, MemberRole, Organization, OrganizationMember, Profile
from taskhub.schemas.auth import Identity
from taskhub.views import (
    OrganizationCreateController,
    OrganizationListController,
    OrganizationSettingsController,
)
from taskhub.views.organizations import FOREIGN_PARENT, OWNER_ONLY


@pytest.fixture
def other_backend(session_factory, other_profile: Profile) -> BackendClient:
    """Backend client of a user who is not the owner"""
    return BackendClient(session_factory, Identity(id=other_profile.id, email=other_profile.email))


@pytest_asyncio.fixture
async def other_membership(db_session, sample_organization: Organization, other_profile: Profile):
    member = OrganizationMember(
        organization_id=sample_organization.id,
        user_id=other_profile.id,
        role=MemberRole.MEMBER.value,
    )
    db_session.add(member)
    await db_session.commit()
    await db_session.refresh(member)
    return member


async def load_settings(backend: BackendClient, organization_id) -> OrganizationSettingsController:
    controller = OrganizationSettingsController(backend, backend.identity, organization_id)
    await controller.load()
    return controller


@pytest.mark.asyncio
class TestOrganizationList:
    """Test the organizations page"""

    async def test_lists_memberships_with_counts(
        self, backend: BackendClient, db_session, sample_organization: Organization
    ):
        db_session.add(Department(organization_id=sample_organization.id, name="Engineering"))
        await db_session.commit()

        state = await OrganizationListController(backend, backend.identity).load()

        assert len(state.data) == 1
        org = state.data[0]
        assert org["name"] == "Test Organization"
        assert org["role"] == "owner"
        assert org["member_count"] == 1
        assert org["department_count"] == 1

    async def test_other_users_organizations_are_not_listed(
        self, other_backend: BackendClient, sample_organization: Organization
    ):
        state = await OrganizationListController(other_backend, other_backend.identity).load()

        assert state.data == []


@pytest.mark.asyncio
class TestOrganizationCreate:
    """Test creating an organization"""

    async def test_creator_becomes_owner(self, backend: BackendClient):
        controller = OrganizationCreateController(backend, backend.identity)

        outcome = await controller.submit({"name": " Acme ", "description": "", "logo_url": ""})

        orgs = await backend.select("organizations", "id, name")
        assert [o["name"] for o in orgs] == ["Acme"]
        assert outcome.url == f"/organizations/{orgs[0]['id']}/settings"

        settings = await load_settings(backend, orgs[0]["id"])
        assert settings.is_owner is True

    async def test_name_is_required(self, backend: BackendClient):
        controller = OrganizationCreateController(backend, backend.identity)

        outcome = await controller.submit({"name": ""})

        assert outcome is None
        assert controller.state.error == "Name is required"
        assert await backend.count("organizations") == 0


@pytest.mark.asyncio
class TestOrganizationSettings:
    """Test the settings page and its owner-only mutations"""

    async def test_load(self, backend: BackendClient, sample_organization: Organization):
        controller = await load_settings(backend, sample_organization.id)

        assert controller.is_owner is True
        assert controller.values["name"] == "Test Organization"
        assert [m["profiles"]["email"] for m in controller.state.data["members"]] == ["test@example.com"]

    async def test_unknown_organization(self, backend: BackendClient):
        controller = OrganizationSettingsController(backend, backend.identity, uuid.uuid4())

        state = await controller.load()

        assert state.not_found is True

    async def test_update_organization(self, backend: BackendClient, sample_organization: Organization):
        controller = await load_settings(backend, sample_organization.id)

        await controller.update_organization({"name": "Renamed", "description": "New", "logo_url": ""})

        assert controller.state.error is None
        assert controller.state.message == "Organization updated successfully"
        assert controller.state.data["organization"]["name"] == "Renamed"

    async def test_non_owner_cannot_update(
        self, other_backend: BackendClient, sample_organization: Organization, other_membership
    ):
        controller = await load_settings(other_backend, sample_organization.id)

        await controller.update_organization({"name": "Hijacked"})

        assert controller.is_owner is False
        assert controller.state.error == OWNER_ONLY
        row = await other_backend.select_one("organizations", "name", [eq("id", sample_organization.id)])
        assert row["name"] == "Test Organization"

    async def test_add_sub_department(self, backend: BackendClient, sample_organization: Organization):
        controller = await load_settings(backend, sample_organization.id)
        await controller.add_department({"name": "Engineering"})
        parent_id = controller.state.data["departments"][0]["id"]

        await controller.add_department({"name": "Platform", "parent_id": str(parent_id)})

        assert controller.state.message == "Department added successfully"
        departments = {d["name"]: d for d in controller.state.data["departments"]}
        assert departments["Platform"]["parent"] == {"name": "Engineering"}
        assert departments["Engineering"]["parent"] is None

    async def test_parent_from_another_organization_is_refused(
        self, backend: BackendClient, db_session, sample_organization: Organization
    ):
        other_org = Organization(name="Other Organization")
        db_session.add(other_org)
        await db_session.flush()
        db_session.add(
            OrganizationMember(organization_id=other_org.id, user_id=backend.identity.id, role=MemberRole.OWNER.value)
        )
        foreign = Department(organization_id=other_org.id, name="Elsewhere")
        db_session.add(foreign)
        await db_session.commit()
        controller = await load_settings(backend, sample_organization.id)

        await controller.add_department({"name": "Platform", "parent_id": str(foreign.id)})

        assert controller.state.error == FOREIGN_PARENT
        assert await backend.count("departments", [eq("organization_id", sample_organization.id)]) == 0

    async def test_department_delete_needs_confirmation(
        self, backend: BackendClient, db_session, sample_organization: Organization
    ):
        department = Department(organization_id=sample_organization.id, name="Engineering")
        db_session.add(department)
        await db_session.commit()
        controller = await load_settings(backend, sample_organization.id)

        await controller.delete_department(str(department.id), confirmed=False)
        assert await backend.count("departments") == 1

        await controller.delete_department(str(department.id), confirmed=True)
        assert await backend.count("departments") == 0
        assert controller.state.message == "Department deleted successfully"

    async def test_add_member_by_email(
        self, backend: BackendClient, sample_organization: Organization, other_profile: Profile
    ):
        controller = await load_settings(backend, sample_organization.id)

        await controller.add_member({"email": "Other@Example.com", "role": "admin"})

        assert controller.state.message == "Member added successfully"
        roles = {m["profiles"]["email"]: m["role"] for m in controller.state.data["members"]}
        assert roles == {"test@example.com": "owner", "other@example.com": "admin"}

    async def test_add_member_unknown_email(self, backend: BackendClient, sample_organization: Organization):
        controller = await load_settings(backend, sample_organization.id)

        await controller.add_member({"email": "nobody@example.com", "role": "member"})

        assert controller.state.error == "No user found with email nobody@example.com"
        assert len(controller.state.data["members"]) == 1

    async def test_owner_role_is_not_assignable(
        self, backend: BackendClient, sample_organization: Organization, other_profile: Profile
    ):
        controller = await load_settings(backend, sample_organization.id)

        await controller.add_member({"email": "other@example.com", "role": "owner"})

        assert controller.state.error == "Role must be admin or member"

    async def test_duplicate_member_shows_backend_error(
        self, backend: BackendClient, sample_organization: Organization, other_membership
    ):
        controller = await load_settings(backend, sample_organization.id)

        await controller.add_member({"email": "other@example.com", "role": "member"})

        assert "UNIQUE constraint failed" in controller.state.error

    async def test_change_member_role(
        self, backend: BackendClient, sample_organization: Organization, other_membership
    ):
        controller = await load_settings(backend, sample_organization.id)

        await controller.change_member_role(str(other_membership.id), {"role": "admin"})

        assert controller.state.message == "Member role updated successfully"
        member = controller._member(str(other_membership.id))
        assert member["role"] == "admin"

    async def test_owner_role_cannot_change(self, backend: BackendClient, sample_organization: Organization):
        controller = await load_settings(backend, sample_organization.id)
        owner = controller.state.data["members"][0]

        await controller.change_member_role(str(owner["id"]), {"role": "member"})

        assert controller.state.error == "The owner's role cannot be changed"

    async def test_remove_member(
        self, backend: BackendClient, sample_organization: Organization, other_membership
    ):
        controller = await load_settings(backend, sample_organization.id)

        await controller.remove_member(str(other_membership.id), confirmed=False)
        assert len(controller.state.data["members"]) == 2

        await controller.remove_member(str(other_membership.id), confirmed=True)
        assert controller.state.message == "Member removed successfully"
        assert len(controller.state.data["members"]) == 1

    async def test_owner_cannot_be_removed(self, backend: BackendClient, sample_organization: Organization):
        controller = await load_settings(backend, sample_organization.id)
        owner = controller.state.data["members"][0]

        await controller.remove_member(str(owner["id"]), confirmed=True)

        assert controller.state.error == "The owner cannot be removed"
        assert len(controller.state.data["members"]) == 1
