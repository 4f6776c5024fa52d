"""Page controllers"""

from .board import TaskBoardController
from .dashboard import DashboardController
from .organizations import (
    OrganizationCreateController,
    OrganizationListController,
    OrganizationSettingsController,
)
from .profile import ProfileController
from .projects import PROJECTS
from .resources import (
    CreateController,
    DetailController,
    EditController,
    ListController,
    Resource,
    ViewController,
)
from .state import Navigate, RecordNotFound, ViewLifetime, ViewState
from .tasks import TASKS, TaskFormController, TaskListController, parse_filters

__all__ = [
    "CreateController",
    "DashboardController",
    "DetailController",
    "EditController",
    "ListController",
    "Navigate",
    "OrganizationCreateController",
    "OrganizationListController",
    "OrganizationSettingsController",
    "PROJECTS",
    "ProfileController",
    "RecordNotFound",
    "Resource",
    "TASKS",
    "TaskBoardController",
    "TaskFormController",
    "TaskListController",
    "ViewController",
    "ViewLifetime",
    "ViewState",
    "parse_filters",
]
