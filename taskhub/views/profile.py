"""Own profile page"""

from typing import Any, Dict, Mapping

from taskhub.backend import Row, eq
from taskhub.schemas.profile import ProfileForm
from taskhub.views.resources import ViewController
from taskhub.views.state import RecordNotFound


class ProfileController(ViewController):
    view_name = "profile"

    def __init__(self, backend, identity, lifetime=None):
        super().__init__(backend, identity, lifetime)
        self.values: Dict[str, str] = ProfileForm.defaults()

    async def fetch(self) -> Row:
        row = await self.backend.select_one("profiles", "*", filters=[eq("id", str(self.identity.id))])
        if row is None:
            raise RecordNotFound(str(self.identity.id))
        return row

    def apply(self, data: Row) -> None:
        super().apply(data)
        self.values = ProfileForm.initial(data)

    async def save(self, raw: Mapping[str, Any]) -> None:
        """Update full name, department and phone, then reload in place"""
        self.values = {**self.values, **{k: v for k, v in raw.items() if isinstance(v, str)}}
        form = self.parse(ProfileForm, raw)
        if form is None:
            return
        patch = form.to_record()
        await self.mutate(
            lambda: self.backend.update("profiles", patch, [eq("id", str(self.identity.id))]),
            message="Profile updated successfully",
        )
