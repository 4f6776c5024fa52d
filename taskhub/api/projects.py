"""Project pages"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from taskhub.api.dependencies import get_backend, get_form, get_lifetime, is_confirmed, require_identity
from taskhub.api.templating import navigate, page_status, redirect, render
from taskhub.backend import BackendClient
from taskhub.models.project import ProjectStatus
from taskhub.schemas.auth import Identity
from taskhub.views import (
    PROJECTS,
    CreateController,
    DetailController,
    EditController,
    ListController,
    ViewLifetime,
)

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("")
async def project_list(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """Projects, newest first"""
    controller = ListController(PROJECTS, backend, identity, lifetime)
    state = await controller.load()
    return render(request, "projects/list.html", {"state": state}, identity)


@router.get("/create")
async def project_create_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
):
    controller = CreateController(PROJECTS, backend, identity)
    return render(
        request,
        "projects/form.html",
        {"state": controller.state, "values": controller.values, "statuses": list(ProjectStatus), "project_id": None},
        identity,
    )


@router.post("/create")
async def project_create(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Insert a project managed by the current user"""
    controller = CreateController(PROJECTS, backend, identity, lifetime)
    outcome = await controller.submit(form)
    if outcome is not None:
        return navigate(outcome)
    return render(
        request,
        "projects/form.html",
        {"state": controller.state, "values": controller.values, "statuses": list(ProjectStatus), "project_id": None},
        identity,
        status_code=page_status(controller.state),
    )


@router.get("/{project_id}")
async def project_detail(
    project_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = DetailController(PROJECTS, backend, identity, project_id, lifetime)
    state = await controller.load()
    return render(
        request, "projects/detail.html", {"state": state}, identity, status_code=page_status(state)
    )


@router.get("/{project_id}/delete")
async def project_delete_confirm(
    project_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """Confirmation page; no call is issued from here"""
    controller = DetailController(PROJECTS, backend, identity, project_id, lifetime)
    state = await controller.load()
    if state.not_found or state.error:
        return render(
            request, "projects/detail.html", {"state": state}, identity, status_code=page_status(state)
        )
    return render(
        request,
        "confirm.html",
        {
            "title": "Delete project",
            "prompt": f"Delete project \"{state.data['name']}\"? This cannot be undone.",
            "action": f"/projects/{project_id}/delete",
            "cancel_url": f"/projects/{project_id}",
        },
        identity,
    )


@router.post("/{project_id}/delete")
async def project_delete(
    project_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    controller = DetailController(PROJECTS, backend, identity, project_id, lifetime)
    outcome = await controller.delete(confirmed=is_confirmed(form))
    if outcome is not None:
        return navigate(outcome)
    if controller.state.error is None:
        return redirect(f"/projects/{project_id}")

    error = controller.state.error
    state = await controller.load()
    state.error = error
    return render(
        request, "projects/detail.html", {"state": state}, identity, status_code=status.HTTP_400_BAD_REQUEST
    )


@router.get("/{project_id}/edit")
async def project_edit_page(
    project_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = EditController(PROJECTS, backend, identity, project_id, lifetime)
    state = await controller.load()
    return render(
        request,
        "projects/form.html",
        {"state": state, "values": controller.values, "statuses": list(ProjectStatus), "project_id": project_id},
        identity,
        status_code=page_status(state),
    )


@router.post("/{project_id}/edit")
async def project_edit(
    project_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Update the whole form, then show the project"""
    controller = EditController(PROJECTS, backend, identity, project_id, lifetime)
    outcome = await controller.submit(form)
    if outcome is not None:
        return navigate(outcome)
    return render(
        request,
        "projects/form.html",
        {"state": controller.state, "values": controller.values, "statuses": list(ProjectStatus), "project_id": project_id},
        identity,
        status_code=page_status(controller.state),
    )
