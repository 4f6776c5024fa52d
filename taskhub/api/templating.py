"""Jinja2 templates and the shared layout context"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from taskhub.config import settings
from taskhub.schemas.auth import Identity
from taskhub.views.state import Navigate, ViewState

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Static sidebar destinations
NAVIGATION = [
    {"label": "Dashboard", "url": "/dashboard"},
    {"label": "Projects", "url": "/projects"},
    {"label": "Tasks", "url": "/tasks"},
    {"label": "Organizations", "url": "/organizations"},
    {"label": "Profile", "url": "/profile"},
]


def render(
    request: Request,
    template: str,
    context: Optional[Dict[str, Any]] = None,
    identity: Optional[Identity] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    """Render a page inside the layout shell"""
    ctx = {
        "app_name": settings.app_name,
        "navigation": NAVIGATION,
        "current_path": request.url.path,
        "identity": identity,
    }
    if context:
        ctx.update(context)
    return templates.TemplateResponse(request, template, ctx, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    """Post/redirect/get"""
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def navigate(outcome: Navigate) -> RedirectResponse:
    return redirect(outcome.url)


def page_status(state: ViewState) -> int:
    """HTTP status for a rendered page view"""
    if state.not_found:
        return status.HTTP_404_NOT_FOUND
    if state.error:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_200_OK
