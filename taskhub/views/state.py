"""Per-page view state, navigation outcomes and page lifetimes"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class ViewState:
    """Transient state owned by one page view"""
    loading: bool = True
    error: Optional[str] = None
    not_found: bool = False
    data: Any = None
    message: Optional[str] = None


@dataclass(frozen=True)
class Navigate:
    """A mutation succeeded and the page should move to ``url``"""
    url: str


class RecordNotFound(Exception):
    """A lookup by id returned no row"""


class ViewLifetime:
    """
    Cancellation token tied to one page view.

    ``probe`` is an optional coroutine function answering "is the view gone?"
    (for HTTP pages, ``request.is_disconnected``). Once the lifetime is closed,
    results of outstanding calls are discarded instead of being written to
    state.
    """

    def __init__(self, probe: Optional[Callable[[], Awaitable[bool]]] = None):
        self._probe = probe
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    async def is_active(self) -> bool:
        if self._closed:
            return False
        if self._probe is not None and await self._probe():
            logger.debug("View lifetime ended by client disconnect")
            self._closed = True
        return not self._closed
