"""Kanban board"""

import logging
from typing import Dict, List, Tuple, Union
from uuid import UUID

from taskhub.backend import BackendError, Order, Row, eq
from taskhub.models.task import TaskStatus
from taskhub.monitoring.metrics import metrics_collector
from taskhub.schemas.task import BoardMoveResponse
from taskhub.views.resources import ViewController

logger = logging.getLogger(__name__)

BOARD_COLUMNS = "*, projects:project_id(name), assignee:assignee_id(email)"


class TaskBoardController(ViewController):
    """
    Tasks grouped by status.

    The loaded tasks are a cache keyed by task id. A move updates the cache
    first and then issues one update; if the update fails the task's
    pre-move snapshot is put back.
    """

    view_name = "board"

    def __init__(self, backend, identity, lifetime=None):
        super().__init__(backend, identity, lifetime)
        self.tasks: Dict[str, Row] = {}

    async def fetch(self) -> List[Row]:
        return await self.backend.select(
            "tasks", BOARD_COLUMNS, order=[Order("created_at", ascending=False)]
        )

    def apply(self, data: List[Row]) -> None:
        super().apply(data)
        self.tasks = {str(row["id"]): row for row in data}

    @property
    def columns(self) -> List[Tuple[TaskStatus, List[Row]]]:
        return [
            (status, [task for task in self.tasks.values() if task["status"] == status.value])
            for status in TaskStatus
        ]

    async def move(self, task_id: Union[str, UUID], status: Union[str, TaskStatus]) -> BoardMoveResponse:
        """
        Move a task to another column.

        Dropping onto the task's own column or an unknown task issues no call.
        """
        key = str(task_id)
        new_status = TaskStatus(status).value
        task = self.tasks.get(key)

        if task is None:
            return BoardMoveResponse(ok=False, task_id=key, error="Task not found")
        if task["status"] == new_status:
            return BoardMoveResponse(ok=True, task_id=key, status=new_status)

        snapshot = dict(task)
        task["status"] = new_status

        try:
            rows = await self.backend.update("tasks", {"status": new_status}, [eq("id", key)])
            if not rows:
                raise BackendError("Task not found")
        except BackendError as exc:
            self.tasks[key] = snapshot
            metrics_collector.record_board_rollback()
            if await self.lifetime.is_active():
                self.fail(exc.message, "mutate")
            return BoardMoveResponse(
                ok=False, task_id=key, status=snapshot["status"], error=exc.message
            )

        logger.info(f"Moved task {key} from {snapshot['status']} to {new_status}")
        return BoardMoveResponse(ok=True, task_id=key, status=new_status)
