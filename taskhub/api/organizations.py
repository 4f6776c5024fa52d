"""Organization pages"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from taskhub.api.dependencies import get_backend, get_form, get_lifetime, is_confirmed, require_identity
from taskhub.api.templating import navigate, page_status, render
from taskhub.backend import BackendClient
from taskhub.models.organization import MemberRole
from taskhub.schemas.auth import Identity
from taskhub.views import (
    OrganizationCreateController,
    OrganizationListController,
    OrganizationSettingsController,
    ViewLifetime,
)

router = APIRouter(prefix="/organizations", tags=["Organizations"])

ASSIGNABLE_ROLES = [MemberRole.ADMIN, MemberRole.MEMBER]


def render_settings(request: Request, controller: OrganizationSettingsController, identity: Identity):
    return render(
        request,
        "organizations/settings.html",
        {
            "state": controller.state,
            "values": controller.values,
            "is_owner": controller.is_owner,
            "organization_id": controller.organization_id,
            "roles": ASSIGNABLE_ROLES,
        },
        identity,
        status_code=page_status(controller.state),
    )


@router.get("")
async def organization_list(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """Organizations the user belongs to"""
    controller = OrganizationListController(backend, identity, lifetime)
    state = await controller.load()
    return render(request, "organizations/list.html", {"state": state}, identity)


@router.get("/create")
async def organization_create_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
):
    controller = OrganizationCreateController(backend, identity)
    return render(
        request,
        "organizations/create.html",
        {"state": controller.state, "values": controller.values},
        identity,
    )


@router.post("/create")
async def organization_create(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Create an organization owned by the current user, then open its settings"""
    controller = OrganizationCreateController(backend, identity, lifetime)
    outcome = await controller.submit(form)
    if outcome is not None:
        return navigate(outcome)
    return render(
        request,
        "organizations/create.html",
        {"state": controller.state, "values": controller.values},
        identity,
        status_code=page_status(controller.state),
    )


@router.get("/{organization_id}/settings")
async def organization_settings(
    organization_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    return render_settings(request, controller, identity)


@router.post("/{organization_id}/settings")
async def organization_update(
    organization_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    await controller.update_organization(form)
    return render_settings(request, controller, identity)


@router.post("/{organization_id}/departments")
async def department_add(
    organization_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    await controller.add_department(form)
    return render_settings(request, controller, identity)


@router.post("/{organization_id}/departments/{department_id}/delete")
async def department_delete(
    organization_id: str,
    department_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Delete a department once confirmed; the first post shows the confirmation"""
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    if not is_confirmed(form):
        return render_confirm(
            request,
            identity,
            title="Delete department",
            prompt="Delete this department and all of its sub-departments? This cannot be undone.",
            action=f"/organizations/{organization_id}/departments/{department_id}/delete",
            cancel_url=f"/organizations/{organization_id}/settings",
        )
    await controller.delete_department(department_id, confirmed=True)
    return render_settings(request, controller, identity)


@router.post("/{organization_id}/members")
async def member_add(
    organization_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    await controller.add_member(form)
    return render_settings(request, controller, identity)


@router.post("/{organization_id}/members/{member_id}/role")
async def member_role(
    organization_id: str,
    member_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    await controller.change_member_role(member_id, form)
    return render_settings(request, controller, identity)


@router.post("/{organization_id}/members/{member_id}/delete")
async def member_remove(
    organization_id: str,
    member_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Remove a member once confirmed; the first post shows the confirmation"""
    controller = OrganizationSettingsController(backend, identity, organization_id, lifetime)
    await controller.load()
    if not is_confirmed(form):
        return render_confirm(
            request,
            identity,
            title="Remove member",
            prompt="Remove this member from the organization?",
            action=f"/organizations/{organization_id}/members/{member_id}/delete",
            cancel_url=f"/organizations/{organization_id}/settings",
        )
    await controller.remove_member(member_id, confirmed=True)
    return render_settings(request, controller, identity)


def render_confirm(request: Request, identity: Identity, **context):
    return render(request, "confirm.html", context, identity)
