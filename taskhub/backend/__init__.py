"""Backend collaborator: table-oriented data access"""

from taskhub.backend.client import BackendClient, Row
from taskhub.backend.errors import AuthenticationError, BackendError, RateLimitError
from taskhub.backend.query import Filter, Order, contains, eq, ilike, in_, parse_select

__all__ = [
    "AuthenticationError",
    "BackendClient",
    "BackendError",
    "Filter",
    "Order",
    "RateLimitError",
    "Row",
    "contains",
    "eq",
    "ilike",
    "in_",
    "parse_select",
]
