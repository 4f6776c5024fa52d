"""Task pages: list, detail, create/edit form"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from taskhub.backend import Filter, Order, contains, eq
from taskhub.schemas.task import TaskFilters, TaskForm
from taskhub.views.resources import ListController, Resource, ViewController
from taskhub.views.state import Navigate, RecordNotFound

logger = logging.getLogger(__name__)

TASK_COLUMNS = (
    "*, projects:project_id(name), departments:department_id(name), "
    "assignee:assignee_id(email), creator:creator_id(email)"
)

TASKS = Resource(
    name="tasks",
    table="tasks",
    form=TaskForm,
    base_url="/tasks",
    list_columns=TASK_COLUMNS,
    detail_columns=TASK_COLUMNS + ", organizations:organization_id(name)",
    derived=lambda identity: {"creator_id": str(identity.id)},
    after_create="detail",
)


def parse_filters(raw: Mapping[str, Any]) -> TaskFilters:
    """Task filters from a query string; unknown values are dropped"""
    values = {k: v for k, v in raw.items() if k in TaskFilters.model_fields}
    try:
        return TaskFilters.model_validate(values)
    except ValidationError:
        valid = {}
        for name, value in values.items():
            try:
                TaskFilters.model_validate({name: value})
            except ValidationError:
                continue
            valid[name] = value
        return TaskFilters.model_validate(valid)


def build_filters(criteria: TaskFilters) -> List[Filter]:
    filters = []
    if criteria.search:
        filters.append(contains("title", criteria.search))
    if criteria.status:
        filters.append(eq("status", criteria.status.value))
    if criteria.priority:
        filters.append(eq("priority", criteria.priority.value))
    return filters


class TaskListController(ListController):
    """Tasks with their project, department, assignee and creator"""

    def __init__(self, backend, identity, criteria: Optional[TaskFilters] = None, lifetime=None):
        self.criteria = criteria or TaskFilters()
        super().__init__(TASKS, backend, identity, lifetime, filters=build_filters(self.criteria))


class TaskFormController(ViewController):
    """
    Create and edit form for tasks.

    Loads the option lists (projects, departments, profiles and the
    organizations of the current user) and, when editing, the stored task.
    """

    view_name = "tasks"

    def __init__(self, backend, identity, record_id: Optional[Union[str, UUID]] = None, lifetime=None):
        super().__init__(backend, identity, lifetime)
        self.record_id = str(record_id) if record_id is not None else None
        self.values: Dict[str, str] = TaskForm.defaults()

    @property
    def editing(self) -> bool:
        return self.record_id is not None

    async def fetch(self) -> Dict[str, Any]:
        projects = await self.backend.select("projects", "id, name", order=[Order("name")])
        departments = await self.backend.select(
            "departments", "id, name, organization_id", order=[Order("name")]
        )
        # Assignees are members of the user's organizations
        colleagues = await self.backend.select(
            "organization_members", "user_id, profiles:user_id(id, email, full_name)"
        )
        profiles = {}
        for member in colleagues:
            profile = member.get("profiles")
            if profile:
                profiles[profile["id"]] = profile
        memberships = await self.backend.select(
            "organization_members",
            "organization_id, organizations:organization_id(name)",
            filters=[eq("user_id", str(self.identity.id))],
        )
        organizations = [
            {"id": m["organization_id"], "name": (m["organizations"] or {}).get("name", "")}
            for m in memberships
        ]

        task = None
        if self.editing:
            task = await self.backend.select_one("tasks", "*", filters=[eq("id", self.record_id)])
            if task is None:
                raise RecordNotFound(self.record_id)

        return {
            "projects": projects,
            "departments": departments,
            "profiles": sorted(profiles.values(), key=lambda p: p["email"]),
            "organizations": organizations,
            "task": task,
        }

    def apply(self, data: Dict[str, Any]) -> None:
        super().apply(data)
        if data["task"] is not None:
            self.values = TaskForm.initial(data["task"])
        elif not self.values.get("organization_id") and len(data["organizations"]) == 1:
            self.values["organization_id"] = str(data["organizations"][0]["id"])

    async def submit(self, raw: Mapping[str, Any]) -> Optional[Navigate]:
        self.values = {**self.values, **{k: v for k, v in raw.items() if isinstance(v, str)}}
        form = self.parse(TaskForm, raw)
        if form is None:
            return None

        if self.editing:
            patch = form.to_record()
            return await self.mutate(
                lambda: self.backend.update("tasks", patch, [eq("id", self.record_id)]),
                on_success=TASKS.detail_url(self.record_id),
            )

        record = form.to_record()
        record.update(TASKS.derived(self.identity))
        return await self.mutate(
            lambda: self.backend.insert("tasks", record),
            on_success=TASKS.created_url,
        )

