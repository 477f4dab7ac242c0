"""
Common schemas: the JSON:API style envelope shared by every resource.
"""

from datetime import datetime
from typing import Annotated, Any, Sequence

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel
from starlette.datastructures import URL

from gatekeeper.utils.pagination import Page, page_links
from gatekeeper.utils.timezone import to_iso8601

Timestamp = Annotated[datetime, PlainSerializer(to_iso8601, return_type=str)]


class RequestBody(BaseModel):
    """Request body; unknown members are rejected."""
    model_config = ConfigDict(extra="forbid")


class Attributes(BaseModel):
    """Resource attributes, read from a model and rendered in camelCase."""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ResourceObject(BaseModel):
    """A single resource."""
    type: str
    id: str
    attributes: dict[str, Any]
    links: dict[str, str]


class ResourceDocument(BaseModel):
    """Response wrapping one resource."""
    data: ResourceObject


class PageMeta(BaseModel):
    count: int
    total: int
    pages: int
    page_size: int
    page_number: int


class CollectionDocument(BaseModel):
    """Response wrapping one page of a collection."""
    data: list[ResourceObject]
    meta: PageMeta
    links: dict[str, str | None]  # self, first, prev, next, last


def resource_object(
    resource_type: str,
    entity: Any,
    attributes_model: type[Attributes],
    base_url: str,
    fields: Sequence[str] | None = None,
) -> ResourceObject:
    """Present an entity, optionally limited to a sparse fieldset."""
    attributes = attributes_model.model_validate(entity).model_dump(by_alias=True, mode="json")
    if fields is not None:
        attributes = {name: value for name, value in attributes.items() if name in fields}
    return ResourceObject(
        type=resource_type,
        id=entity.id,
        attributes=attributes,
        links={"self": f"{base_url}/{resource_type}/{entity.id}"},
    )


def resource_document(
    resource_type: str,
    entity: Any,
    attributes_model: type[Attributes],
    base_url: str,
    fields: Sequence[str] | None = None,
) -> ResourceDocument:
    return ResourceDocument(
        data=resource_object(resource_type, entity, attributes_model, base_url, fields)
    )


def collection_document(
    resource_type: str,
    page: Page[Any],
    attributes_model: type[Attributes],
    url: URL,
    base_url: str,
    fields: Sequence[str] | None = None,
) -> CollectionDocument:
    return CollectionDocument(
        data=[
            resource_object(resource_type, entity, attributes_model, base_url, fields)
            for entity in page.results
        ],
        meta=PageMeta(**page.meta),
        links=page_links(url, page),
    )
