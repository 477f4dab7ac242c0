"""
Pagination and sparse fieldset utilities.

Collections are paged by offset (page[number]/page[size]). Every list
response carries the same meta block:

    {"count": 10, "total": 42, "pages": 5, "page_size": 10, "page_number": 1}

and the same links block (self/first/prev/next/last).
"""

import math
from dataclasses import dataclass
from typing import Generic, TypeVar, Any

from starlette.datastructures import URL

from gatekeeper.core.exceptions import BadRequestError
from gatekeeper.utils.query import QueryDescriptor

T = TypeVar("T")


# ============================================================
# FIELD ALLOW-LISTS
# ============================================================

# Public (camelCase) field name -> model attribute, per resource type.
# The single source for sparse fieldsets, filtering and sorting.
RESOURCE_FIELDS: dict[str, dict[str, str]] = {
    "organizations": {
        "id": "id",
        "name": "name",
        "ownerId": "owner_id",
        "attributes": "attributes",
        "active": "active",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
    "groups": {
        "id": "id",
        "organizationId": "organization_id",
        "name": "name",
        "attributes": "attributes",
        "active": "active",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
    "roles": {
        "id": "id",
        "entityId": "entity_id",
        "name": "name",
        "attributes": "attributes",
        "active": "active",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
    "permissions": {
        "id": "id",
        "name": "name",
        "description": "description",
    },
    "users": {
        "id": "id",
        "login": "login",
        "email": "email",
        "attributes": "attributes",
        "enabled": "enabled",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
}


def validate_fields(resource_type: str, descriptor: QueryDescriptor) -> list[str] | None:
    """
    Check the requested sparse fieldset for a resource type.

    Returns the requested public field names (``id`` always included), or
    None when the client did not restrict fields.

    Raises:
        BadRequestError: A requested field is not exposed by the resource.
    """
    requested = descriptor.fields.get(resource_type)
    if requested is None:
        return None

    allowed = RESOURCE_FIELDS[resource_type]
    unknown = [name for name in requested if name not in allowed]
    if unknown:
        raise BadRequestError(
            f"Unknown field(s) for {resource_type}: {', '.join(unknown)}"
        )

    return ["id", *[name for name in requested if name != "id"]]


# ============================================================
# PAGES
# ============================================================

def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for total items."""
    return math.ceil(total / page_size) if total > 0 else 0


@dataclass
class Page(Generic[T]):
    """One page of a collection query."""

    results: list[T]
    total: int
    limit: int
    offset: int

    @property
    def count(self) -> int:
        return len(self.results)

    @property
    def pages(self) -> int:
        return page_count(self.total, self.limit)

    @property
    def page_number(self) -> int:
        return self.offset // self.limit + 1

    @property
    def meta(self) -> dict[str, int]:
        return {
            "count": self.count,
            "total": self.total,
            "pages": self.pages,
            "page_size": self.limit,
            "page_number": self.page_number,
        }


def page_links(url: URL, page: Page[Any]) -> dict[str, str | None]:
    """Build self/first/prev/next/last links for a page."""
    base = url.remove_query_params(["page.number", "page.size", "page[number]", "page[size]"])
    last_number = max(page.pages, 1)

    def link(number: int) -> str:
        return str(
            base.include_query_params(
                **{"page[number]": number, "page[size]": page.limit}
            )
        )

    return {
        "self": link(page.page_number),
        "first": link(1),
        "prev": link(page.page_number - 1) if page.page_number > 1 else None,
        "next": link(page.page_number + 1) if page.page_number < last_number else None,
        "last": link(last_number),
    }
