"""Select strings, filters and ordering understood by the backend client

A select string lists columns and relational embeds, for example::

    "*, projects:project_id (name), assignee:assignee_id (email)"

``alias:target(columns)`` embeds rows of a related table under ``alias``.
``target`` is a foreign key column of the queried table, the name of a table
it references, or the name of a table referencing it.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

from taskhub.backend.errors import BackendError

EMBED_PATTERN = re.compile(
    r"^(?:(?P<alias>\w+)\s*:\s*)?(?P<target>\w+)\s*\((?P<columns>.*)\)$", re.DOTALL
)
COLUMN_PATTERN = re.compile(r"^\w+$")

OPERATORS = ("eq", "ilike", "in")


@dataclass(frozen=True)
class Embed:
    """Related rows requested inline"""
    alias: str
    target: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class SelectSpec:
    """Parsed select string"""
    columns: Tuple[str, ...]
    embeds: Tuple[Embed, ...] = ()


@dataclass(frozen=True)
class Filter:
    """Row filter; ``op`` is one of OPERATORS"""
    column: str
    value: Any
    op: str = "eq"


@dataclass(frozen=True)
class Order:
    """Ordering term"""
    column: str
    ascending: bool = True


def _split_top_level(text: str) -> List[str]:
    items: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise BackendError(f"failed to parse select parameter ({text})")
        if char == "," and depth == 0:
            items.append("".join(current))
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise BackendError(f"failed to parse select parameter ({text})")
    items.append("".join(current))
    return items


def parse_select(text: str) -> SelectSpec:
    """
    Parse a select string into columns and embeds.

    Args:
        text: Select string such as ``"id, name"`` or ``"*, creator:creator_id(email)"``

    Returns:
        SelectSpec

    Raises:
        BackendError: If the string is malformed or nests embeds
    """
    if not text or not text.strip():
        return SelectSpec(columns=("*",))

    columns: List[str] = []
    embeds: List[Embed] = []

    for raw_item in _split_top_level(text):
        item = raw_item.strip()
        if item == "*" or COLUMN_PATTERN.match(item):
            columns.append(item)
            continue

        match = EMBED_PATTERN.match(item)
        if not match:
            raise BackendError(f"failed to parse select parameter ({text})")

        inner = parse_select(match.group("columns"))
        if inner.embeds:
            raise BackendError("nested embeds are not supported")

        target = match.group("target")
        embeds.append(
            Embed(
                alias=match.group("alias") or target,
                target=target,
                columns=inner.columns,
            )
        )

    return SelectSpec(columns=tuple(columns), embeds=tuple(embeds))


def eq(column: str, value: Any) -> Filter:
    """Equality filter"""
    return Filter(column, value, "eq")


def ilike(column: str, pattern: str) -> Filter:
    """Case-insensitive LIKE filter with a raw pattern"""
    return Filter(column, pattern, "ilike")


def contains(column: str, text: str) -> Filter:
    """Case-insensitive substring filter"""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return Filter(column, f"%{escaped}%", "ilike")


def in_(column: str, values: Iterable[Any]) -> Filter:
    """Membership filter"""
    return Filter(column, tuple(values), "in")
