"""API dependencies for the session guard and per-request collaborators"""

from typing import Any, Dict, Optional
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from taskhub.api.errors import LoginRequired
from taskhub.backend import BackendClient
from taskhub.config import settings
from taskhub.database import get_session_factory
from taskhub.schemas.auth import Identity
from taskhub.services.identity_service import IdentityService
from taskhub.views.state import ViewLifetime


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the cookie"""
    return request.cookies.get(settings.session_cookie_name) or None


def get_identity_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> IdentityService:
    return IdentityService(session_factory)


async def get_optional_identity(
    token: Optional[str] = Depends(get_session_token),
    identity_service: IdentityService = Depends(get_identity_service),
) -> Optional[Identity]:
    """
    Current identity if the session is valid, otherwise None.

    A backend failure propagates as BackendError and is rendered by the
    global error handler.
    """
    return await identity_service.get_current_user(token)


async def require_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """
    Session guard for protected pages.

    Raises:
        LoginRequired: If there is no active session
    """
    if identity is None:
        raise LoginRequired()
    return identity


def get_backend(
    identity: Identity = Depends(require_identity),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> BackendClient:
    """Backend client bound to the signed-in identity"""
    return BackendClient(session_factory, identity)


def get_lifetime(request: Request) -> ViewLifetime:
    """Page lifetime that ends when the client disconnects"""
    return ViewLifetime(probe=request.is_disconnected)


async def get_form(request: Request) -> Dict[str, Any]:
    """Submitted HTML form fields"""
    form = await request.form()
    return {key: value for key, value in form.items()}


def is_confirmed(form: Dict[str, Any]) -> bool:
    """Delete forms post confirm=yes from the confirmation page"""
    return form.get("confirm") == "yes"
