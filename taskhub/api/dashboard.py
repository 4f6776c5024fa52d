"""Dashboard and profile pages"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from taskhub.api.dependencies import get_backend, get_form, get_lifetime, require_identity
from taskhub.api.templating import page_status, render
from taskhub.backend import BackendClient
from taskhub.schemas.auth import Identity
from taskhub.views import DashboardController, ProfileController, ViewLifetime

router = APIRouter(tags=["Pages"])


@router.get("/dashboard")
async def dashboard(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """Task, project and organization counts"""
    controller = DashboardController(backend, identity, lifetime)
    state = await controller.load()
    return render(request, "dashboard.html", {"state": state}, identity)


@router.get("/profile")
async def profile(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = ProfileController(backend, identity, lifetime)
    state = await controller.load()
    return render(
        request,
        "profile.html",
        {"state": state, "values": controller.values},
        identity,
        status_code=page_status(state),
    )


@router.post("/profile")
async def profile_update(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Save full name, department and phone"""
    controller = ProfileController(backend, identity, lifetime)
    await controller.load()
    await controller.save(form)
    return render(
        request,
        "profile.html",
        {"state": controller.state, "values": controller.values},
        identity,
        status_code=page_status(controller.state),
    )
