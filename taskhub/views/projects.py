"""Project pages"""

from taskhub.schemas.project import ProjectForm
from taskhub.views.resources import Resource

PROJECTS = Resource(
    name="projects",
    table="projects",
    form=ProjectForm,
    base_url="/projects",
    list_columns="*, manager:manager_id(email, full_name)",
    detail_columns="*, manager:manager_id(email, full_name)",
    derived=lambda identity: {"manager_id": str(identity.id)},
    after_create="list",
)
