"""Form and API schemas package"""

from .auth import LoginForm, Identity, AuthSession
from .organization import OrganizationForm, DepartmentForm, MemberInviteForm, MemberRoleForm
from .project import ProjectForm
from .profile import ProfileForm
from .task import TaskForm, TaskFilters, BoardMove, BoardMoveResponse

__all__ = [
    "LoginForm",
    "Identity",
    "AuthSession",
    "OrganizationForm",
    "DepartmentForm",
    "MemberInviteForm",
    "MemberRoleForm",
    "ProjectForm",
    "ProfileForm",
    "TaskForm",
    "TaskFilters",
    "BoardMove",
    "BoardMoveResponse",
]
