"""Login and logout"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from taskhub.api.dependencies import get_identity_service, get_optional_identity, get_session_token
from taskhub.api.errors import LOGIN_URL
from taskhub.api.templating import redirect, render
from taskhub.backend.errors import AuthenticationError, BackendError, RateLimitError
from taskhub.config import settings
from taskhub.schemas.auth import Identity, LoginForm
from taskhub.schemas.common import validation_message
from taskhub.services.identity_service import IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/login")
async def login_page(
    request: Request,
    message: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    """Login form; signed-in users go straight to the dashboard"""
    if identity is not None:
        return redirect("/dashboard")
    return render(request, "auth/login.html", {"message": message, "email": ""})


@router.post("/login")
async def login(
    request: Request,
    identity_service: IdentityService = Depends(get_identity_service),
):
    """
    Authenticate and start a session

    On success the session token is stored in an HttpOnly cookie and the
    browser is sent to the dashboard. Errors are shown on the form.
    """
    raw = dict(await request.form())
    email = str(raw.get("email", "")).strip()

    try:
        form = LoginForm.model_validate({"email": email, "password": raw.get("password", "")})
    except ValidationError as e:
        return render(
            request,
            "auth/login.html",
            {"error": validation_message(e), "email": email},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    client_ip = request.client.host if request.client else "unknown"

    try:
        session = await identity_service.sign_in(form.email, form.password, client_ip)
    except RateLimitError as e:
        return render(
            request,
            "auth/login.html",
            {"error": e.message, "email": email},
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )
    except AuthenticationError as e:
        return render(
            request,
            "auth/login.html",
            {"error": e.message, "email": email},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    except BackendError as e:
        return render(
            request,
            "auth/login.html",
            {"error": e.message, "email": email},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = redirect("/dashboard")
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(get_session_token),
    identity_service: IdentityService = Depends(get_identity_service),
):
    """Revoke the session token and return to the login page"""
    await identity_service.sign_out(token)
    response = redirect(LOGIN_URL)
    response.delete_cookie(settings.session_cookie_name)
    return response
