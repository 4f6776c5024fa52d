"""Dashboard statistics"""

import asyncio
from typing import Dict

from taskhub.backend import eq
from taskhub.views.resources import ViewController


class DashboardController(ViewController):
    """Task, project and organization counts, fetched concurrently"""

    view_name = "dashboard"

    async def fetch(self) -> Dict[str, int]:
        # All three must finish before anything renders
        tasks, projects, organizations = await asyncio.gather(
            self.backend.count("tasks"),
            self.backend.count("projects"),
            self.backend.count("organization_members", [eq("user_id", str(self.identity.id))]),
        )
        return {"tasks": tasks, "projects": projects, "organizations": organizations}
