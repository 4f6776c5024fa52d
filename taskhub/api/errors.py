"""Error responses: RFC 7807 problem documents for JSON, error pages for HTML"""

import logging
from typing import Optional, Dict, List
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from taskhub.api.templating import redirect, render
from taskhub.backend.errors import BackendError
from taskhub.config import settings
from taskhub.monitoring.metrics import metrics_collector

logger = logging.getLogger(__name__)

LOGIN_URL = "/auth/login"


class LoginRequired(Exception):
    """No active session for a protected page"""


def wants_json(request: Request) -> bool:
    """True for API-style requests, False for browser page requests"""
    if request.url.path.startswith("/api/"):
        return True
    accept = (request.headers.get("accept") or "").lower()
    return "application/json" in accept and "text/html" not in accept


def create_error_response(
    status_code: int,
    title: str,
    detail: str,
    error_type: Optional[str] = None,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, str]]] = None
) -> JSONResponse:
    """
    Create an RFC 7807 compliant error response

    Args:
        status_code: HTTP status code
        title: Short error title
        detail: Detailed error message
        error_type: Error type slug (defaults to one derived from the status code)
        instance: Request path or identifier
        errors: List of validation errors with field and message

    Returns:
        JSONResponse with problem details
    """
    error_type_map = {
        400: "validation_error",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        429: "rate_limit_exceeded",
        500: "internal_server_error",
        503: "service_unavailable"
    }

    if not error_type:
        error_type = error_type_map.get(status_code, "error")

    problem = {
        "type": f"{settings.error_type_base}/{error_type}",
        "title": title,
        "status": status_code,
        "detail": detail
    }

    if instance:
        problem["instance"] = instance

    if errors:
        problem["errors"] = errors

    return JSONResponse(
        status_code=status_code,
        content=problem
    )


def unauthorized_error(detail: str = "Authentication required", instance: Optional[str] = None) -> JSONResponse:
    """Create a 401 Unauthorized error response"""
    return create_error_response(
        status_code=status.HTTP_401_UNAUTHORIZED,
        title="Unauthorized",
        detail=detail,
        instance=instance
    )


def validation_error(
    detail: str = "Validation failed",
    errors: Optional[List[Dict[str, str]]] = None,
    instance: Optional[str] = None
) -> JSONResponse:
    """Create a 422 Validation Error response"""
    return create_error_response(
        status_code=422,
        title="Validation Error",
        detail=detail,
        errors=errors,
        instance=instance
    )


async def login_required_handler(request: Request, exc: LoginRequired) -> Response:
    """Send browsers to the login page; API clients get a 401 problem document"""
    metrics_collector.record_auth_event("guard_redirect")
    if wants_json(request):
        return unauthorized_error(instance=request.url.path)
    return redirect(LOGIN_URL)


async def backend_error_handler(request: Request, exc: BackendError) -> Response:
    """Backend failures that escaped a page controller"""
    logger.error(f"Unhandled backend error on {request.url.path}: {exc.message}")
    if wants_json(request):
        return create_error_response(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            title="Service Unavailable",
            detail=exc.message,
            instance=request.url.path
        )
    return render(
        request,
        "error.html",
        {"error": exc.message},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    """Malformed JSON payloads"""
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return validation_error(errors=errors, instance=request.url.path)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(BackendError, backend_error_handler)
