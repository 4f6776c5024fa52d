"""
Load, render, mutate, reload.

Every page runs the same cycle against the backend client:

1. ``load()`` issues the read queries of ``fetch()`` and stores the result
   (or the error message, or the not-found flag) in ``state``.
2. A user action issues exactly one mutation through ``mutate()``. On
   success the page either navigates away or reloads in place; on failure
   the message is stored and the loaded data is left untouched.

``Resource`` describes one entity so the list/detail/create/edit pages of
projects and tasks are the same four controllers with different settings.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union
from uuid import UUID

from pydantic import ValidationError

from taskhub.backend import BackendClient, BackendError, Filter, Order, Row, eq
from taskhub.monitoring.metrics import metrics_collector
from taskhub.schemas.auth import Identity
from taskhub.schemas.common import FormModel, validation_message
from taskhub.views.state import Navigate, RecordNotFound, ViewLifetime, ViewState

logger = logging.getLogger(__name__)

Target = Union[str, Callable[[Any], str], None]


class ViewController:
    """Base controller: one instance per page view"""

    view_name = "view"

    def __init__(self, backend: BackendClient, identity: Identity, lifetime: Optional[ViewLifetime] = None):
        self.backend = backend
        self.identity = identity
        self.lifetime = lifetime or ViewLifetime()
        self.state = ViewState()

    async def fetch(self) -> Any:
        """Read queries for this page"""
        raise NotImplementedError

    def apply(self, data: Any) -> None:
        """Populate state from a successful fetch"""
        self.state.data = data

    def fail(self, message: str, phase: str) -> None:
        self.state.error = message
        metrics_collector.record_view_error(self.view_name, phase)

    async def load(self) -> ViewState:
        self.state.loading = True
        self.state.error = None
        self.state.not_found = False
        try:
            data = await self.fetch()
        except RecordNotFound:
            if await self.lifetime.is_active():
                self.state.not_found = True
                self.state.loading = False
            return self.state
        except BackendError as exc:
            if await self.lifetime.is_active():
                self.fail(exc.message, "load")
                self.state.loading = False
            return self.state

        if await self.lifetime.is_active():
            self.apply(data)
            self.state.loading = False
        else:
            logger.debug(f"Discarded {self.view_name} load result after view closed")
        return self.state

    def parse(self, schema: Type[FormModel], raw: Mapping[str, Any]) -> Optional[FormModel]:
        """Validate form input; on failure store the message and return None"""
        try:
            return schema.model_validate(dict(raw))
        except ValidationError as exc:
            self.fail(validation_message(exc), "validate")
            return None

    async def mutate(
        self,
        operation: Callable[[], Awaitable[Any]],
        on_success: Target = None,
        message: Optional[str] = None,
    ) -> Optional[Navigate]:
        """
        Issue one mutation.

        Args:
            operation: Zero-argument coroutine function performing the call
            on_success: URL (or function of the call result returning one) to
                navigate to; None reloads the page in place
            message: Success message shown after an in-place reload

        Returns:
            Navigate when the page should leave, otherwise None
        """
        try:
            result = await operation()
        except BackendError as exc:
            if await self.lifetime.is_active():
                self.fail(exc.message, "mutate")
            return None

        if not await self.lifetime.is_active():
            return None

        if on_success is not None:
            url = on_success(result) if callable(on_success) else on_success
            return Navigate(url)

        await self.load()
        if self.state.error is None:
            self.state.message = message
        return None


def _no_derived_fields(identity: Identity) -> Dict[str, Any]:
    return {}


@dataclass(frozen=True)
class Resource:
    """Configuration of one entity's CRUD pages"""
    name: str
    table: str
    form: Type[FormModel]
    base_url: str
    list_columns: str = "*"
    detail_columns: str = "*"
    order: Tuple[Order, ...] = (Order("created_at", ascending=False),)
    derived: Callable[[Identity], Dict[str, Any]] = _no_derived_fields
    # "list" or "detail"
    after_create: str = "detail"

    def detail_url(self, record_id: Any) -> str:
        return f"{self.base_url}/{record_id}"

    def created_url(self, rows: List[Row]) -> str:
        if self.after_create == "list" or not rows:
            return self.base_url
        return self.detail_url(rows[0]["id"])


class ResourceController(ViewController):
    def __init__(
        self,
        resource: Resource,
        backend: BackendClient,
        identity: Identity,
        lifetime: Optional[ViewLifetime] = None,
    ):
        super().__init__(backend, identity, lifetime)
        self.resource = resource
        self.view_name = resource.name


class ListController(ResourceController):
    """Rows exactly as returned for the current filters"""

    def __init__(self, resource, backend, identity, lifetime=None, filters: Sequence[Filter] = ()):
        super().__init__(resource, backend, identity, lifetime)
        self.filters = list(filters)

    async def fetch(self) -> List[Row]:
        return await self.backend.select(
            self.resource.table,
            self.resource.list_columns,
            filters=self.filters,
            order=self.resource.order,
        )


class _RecordController(ResourceController):
    def __init__(self, resource, backend, identity, record_id: Union[str, UUID], lifetime=None):
        super().__init__(resource, backend, identity, lifetime)
        self.record_id = str(record_id)

    async def fetch_record(self, columns: str) -> Row:
        row = await self.backend.select_one(
            self.resource.table, columns, filters=[eq("id", self.record_id)]
        )
        if row is None:
            raise RecordNotFound(self.record_id)
        return row


class DetailController(_RecordController):
    """Single record, or the not-found state"""

    async def fetch(self) -> Row:
        return await self.fetch_record(self.resource.detail_columns)

    async def delete(self, confirmed: bool) -> Optional[Navigate]:
        """Delete the record; nothing is issued unless confirmed"""
        if not confirmed:
            return None
        logger.info(f"Deleting {self.resource.table} {self.record_id}")
        return await self.mutate(
            lambda: self.backend.delete(self.resource.table, [eq("id", self.record_id)]),
            on_success=self.resource.base_url,
        )


class CreateController(ResourceController):
    """Empty form; submit inserts one record and navigates"""

    def __init__(self, resource, backend, identity, lifetime=None):
        super().__init__(resource, backend, identity, lifetime)
        self.values: Dict[str, str] = resource.form.defaults()

    async def fetch(self) -> Dict[str, Any]:
        return {}

    def record(self, form: FormModel) -> Dict[str, Any]:
        """Insert payload: form values plus fields derived from the identity"""
        record = form.to_record()
        record.update(self.resource.derived(self.identity))
        return record

    async def submit(self, raw: Mapping[str, Any]) -> Optional[Navigate]:
        self.values = {**self.values, **{k: v for k, v in raw.items() if isinstance(v, str)}}
        form = self.parse(self.resource.form, raw)
        if form is None:
            return None
        record = self.record(form)
        return await self.mutate(
            lambda: self.backend.insert(self.resource.table, record),
            on_success=self.resource.created_url,
        )


class EditController(_RecordController):
    """Form populated from the stored row; submit updates the whole form"""

    def __init__(self, resource, backend, identity, record_id, lifetime=None):
        super().__init__(resource, backend, identity, record_id, lifetime)
        self.values: Dict[str, str] = {}

    async def fetch(self) -> Row:
        return await self.fetch_record("*")

    def apply(self, data: Row) -> None:
        super().apply(data)
        self.values = self.resource.form.initial(data)

    async def submit(self, raw: Mapping[str, Any]) -> Optional[Navigate]:
        self.values = {**self.values, **{k: v for k, v in raw.items() if isinstance(v, str)}}
        form = self.parse(self.resource.form, raw)
        if form is None:
            return None
        patch = form.to_record()
        return await self.mutate(
            lambda: self.backend.update(self.resource.table, patch, [eq("id", self.record_id)]),
            on_success=self.resource.detail_url(self.record_id),
        )
