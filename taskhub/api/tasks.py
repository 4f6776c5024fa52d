"""Task pages and the kanban board"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status

from taskhub.api.dependencies import get_backend, get_form, get_lifetime, is_confirmed, require_identity
from taskhub.api.templating import navigate, page_status, redirect, render
from taskhub.backend import BackendClient
from taskhub.models.task import TaskPriority, TaskStatus
from taskhub.schemas.auth import Identity
from taskhub.schemas.task import BoardMove, BoardMoveResponse
from taskhub.views import (
    TASKS,
    DetailController,
    TaskBoardController,
    TaskFormController,
    TaskListController,
    ViewLifetime,
    parse_filters,
)

router = APIRouter(prefix="/tasks", tags=["Tasks"])

CHOICES = {"statuses": list(TaskStatus), "priorities": list(TaskPriority)}


def render_form(request: Request, controller: TaskFormController, identity: Identity):
    return render(
        request,
        "tasks/form.html",
        {
            **CHOICES,
            "state": controller.state,
            "values": controller.values,
            "task_id": controller.record_id,
        },
        identity,
        status_code=page_status(controller.state),
    )


@router.get("")
async def task_list(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """Tasks filtered by title search, status and priority"""
    criteria = parse_filters(request.query_params)
    controller = TaskListController(backend, identity, criteria, lifetime)
    state = await controller.load()
    return render(
        request,
        "tasks/list.html",
        {**CHOICES, "state": state, "criteria": criteria},
        identity,
    )


@router.get("/board")
async def task_board(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = TaskBoardController(backend, identity, lifetime)
    state = await controller.load()
    return render(
        request,
        "tasks/board.html",
        {"state": state, "columns": controller.columns},
        identity,
    )


@router.post("/board/move", response_model=BoardMoveResponse)
async def task_board_move(
    move: BoardMove,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """
    Move a card to another column

    The browser has already moved the card; when ``ok`` is false it moves it
    back to ``status``.
    """
    controller = TaskBoardController(backend, identity, lifetime)
    state = await controller.load()
    if state.error:
        return BoardMoveResponse(ok=False, task_id=move.task_id, error=state.error)
    return await controller.move(move.task_id, move.status)


@router.get("/create")
async def task_create_page(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = TaskFormController(backend, identity, lifetime=lifetime)
    await controller.load()
    return render_form(request, controller, identity)


@router.post("/create")
async def task_create(
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Insert a task created by the current user, then show it"""
    controller = TaskFormController(backend, identity, lifetime=lifetime)
    await controller.load()
    outcome = await controller.submit(form)
    if outcome is not None:
        return navigate(outcome)
    return render_form(request, controller, identity)


@router.get("/{task_id}")
async def task_detail(
    task_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = DetailController(TASKS, backend, identity, task_id, lifetime)
    state = await controller.load()
    return render(
        request, "tasks/detail.html", {"state": state}, identity, status_code=page_status(state)
    )


@router.get("/{task_id}/delete")
async def task_delete_confirm(
    task_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    """Confirmation page; no call is issued from here"""
    controller = DetailController(TASKS, backend, identity, task_id, lifetime)
    state = await controller.load()
    if state.not_found or state.error:
        return render(
            request, "tasks/detail.html", {"state": state}, identity, status_code=page_status(state)
        )
    return render(
        request,
        "confirm.html",
        {
            "title": "Delete task",
            "prompt": f"Delete task \"{state.data['title']}\"? This cannot be undone.",
            "action": f"/tasks/{task_id}/delete",
            "cancel_url": f"/tasks/{task_id}",
        },
        identity,
    )


@router.post("/{task_id}/delete")
async def task_delete(
    task_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    controller = DetailController(TASKS, backend, identity, task_id, lifetime)
    outcome = await controller.delete(confirmed=is_confirmed(form))
    if outcome is not None:
        return navigate(outcome)
    if controller.state.error is None:
        return redirect(f"/tasks/{task_id}")

    error = controller.state.error
    state = await controller.load()
    state.error = error
    return render(
        request, "tasks/detail.html", {"state": state}, identity, status_code=status.HTTP_400_BAD_REQUEST
    )


@router.get("/{task_id}/edit")
async def task_edit_page(
    task_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
):
    controller = TaskFormController(backend, identity, record_id=task_id, lifetime=lifetime)
    await controller.load()
    return render_form(request, controller, identity)


@router.post("/{task_id}/edit")
async def task_edit(
    task_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
    backend: BackendClient = Depends(get_backend),
    lifetime: ViewLifetime = Depends(get_lifetime),
    form: Dict[str, Any] = Depends(get_form),
):
    """Update the whole form, then show the task"""
    controller = TaskFormController(backend, identity, record_id=task_id, lifetime=lifetime)
    state = await controller.load()
    if state.not_found:
        return render_form(request, controller, identity)
    outcome = await controller.submit(form)
    if outcome is not None:
        return navigate(outcome)
    return render_form(request, controller, identity)
