"""
Collection query parsing.

Turns raw HTTP query parameters into a QueryDescriptor that repositories
execute. Pure transformation, no database access.

Supported parameters (bracket or dot notation):
    page[size]=20            page.size=20
    page[number]=2           page.number=2
    filter[name]=admins      filter.name=admins        (eq)
    filter[createdAt][gt]=2024-01-01T00:00:00Z
    filter[id][in]=a,b,c
    fields[groups]=name,active
    sort=name,-createdAt
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from gatekeeper.core.exceptions import BadRequestError

OPERATORS = frozenset({"eq", "ne", "lt", "lte", "gt", "gte", "in", "nin", "like"})
LIST_OPERATORS = frozenset({"in", "nin"})

# Largest OFFSET the store accepts (signed 64-bit)
MAX_OFFSET = 2**63 - 1

_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")


@dataclass
class QueryDescriptor:
    """Parsed collection query."""

    filters: dict[str, dict[str, Any]] = field(default_factory=dict)
    fields: dict[str, list[str]] = field(default_factory=dict)
    # (public column name, descending)
    order_by: list[tuple[str, bool]] = field(default_factory=list)
    limit: int = 10
    offset: int = 0

    @property
    def page_size(self) -> int:
        return self.limit

    @property
    def page_number(self) -> int:
        return self.offset // self.limit + 1


def split_key(key: str) -> list[str]:
    """
    Split a parameter key into its parts.

    ``filter[name][eq]`` and ``filter.name.eq`` both give
    ``["filter", "name", "eq"]``.
    """
    if "[" in key:
        head, _, rest = key.partition("[")
        rest = "[" + rest
        parts = _BRACKET_PART.findall(rest)
        if "".join(f"[{p}]" for p in parts) != rest:
            raise BadRequestError(f"Malformed query parameter: {key}")
        return [head, *parts]
    return key.split(".")


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        raise BadRequestError(f"{name} must be an integer")


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_query(
    raw_params: Mapping[str, str] | Iterable[tuple[str, str]],
    default_page_size: int = 10,
    max_page_size: int = 100,
) -> QueryDescriptor:
    """
    Parse query parameters into a QueryDescriptor.

    Page size is clamped to [1, max_page_size] and the page number to at
    least 1. Unknown top-level parameters are ignored.

    Raises:
        BadRequestError: Non-numeric pagination, a page number whose offset
            is out of range, unknown filter operator, or a malformed
            filter/fields/page key.
    """
    items = raw_params.items() if isinstance(raw_params, Mapping) else raw_params

    descriptor = QueryDescriptor()
    page_size = default_page_size
    page_number = 1

    for key, value in items:
        parts = split_key(key)
        kind = parts[0]

        if kind == "page":
            if len(parts) != 2:
                raise BadRequestError(f"Malformed query parameter: {key}")
            if parts[1] == "size":
                page_size = _parse_int(value, "page[size]")
            elif parts[1] == "number":
                page_number = _parse_int(value, "page[number]")
            else:
                raise BadRequestError(f"Unknown pagination parameter: {key}")

        elif kind == "filter":
            if len(parts) not in (2, 3) or not parts[1]:
                raise BadRequestError(f"Malformed filter: {key}")
            column = parts[1]
            operator = parts[2].lower() if len(parts) == 3 else "eq"
            if operator not in OPERATORS:
                raise BadRequestError(f"Unknown filter operator: {operator}")
            operand: Any = _split_list(value) if operator in LIST_OPERATORS else value
            descriptor.filters.setdefault(column, {})[operator] = operand

        elif kind == "fields":
            if len(parts) != 2 or not parts[1]:
                raise BadRequestError(f"Malformed fields parameter: {key}")
            descriptor.fields[parts[1]] = _split_list(value)

        elif kind == "sort" and len(parts) == 1:
            for column in _split_list(value):
                if column.startswith("-"):
                    descriptor.order_by.append((column[1:], True))
                else:
                    descriptor.order_by.append((column.lstrip("+"), False))

    page_size = min(max(page_size, 1), max_page_size)
    page_number = max(page_number, 1)
    if (page_number - 1) * page_size > MAX_OFFSET:
        raise BadRequestError("page[number] is out of range")

    descriptor.limit = page_size
    descriptor.offset = (page_number - 1) * page_size
    return descriptor
