"""
Base repository with common CRUD, collection and grant operations.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TypeVar, Generic, Type, Any, AsyncIterator, Iterable

from sqlalchemy import JSON, Boolean, DateTime, Integer, Select, String, Table, delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import (
    BadRequestError,
    InvalidReferenceError,
    NameConflictError,
    NotFoundError,
)
from gatekeeper.models.base import Base
from gatekeeper.utils.pagination import Page, RESOURCE_FIELDS
from gatekeeper.utils.query import QueryDescriptor
from gatekeeper.utils.timezone import from_iso8601

ModelT = TypeVar("ModelT", bound=Base)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class Relation:
    """
    A grant relation seen from one side.

    ``table`` holds (parent_column, child_column) pairs; the children are
    rows of ``child_model`` and are presented as ``child_resource``.
    """

    table: Table
    parent_column: str
    child_column: str
    child_model: type[Base]
    child_resource: str
    child_order: str = "name"

    @property
    def parent(self):
        return self.table.c[self.parent_column]

    @property
    def child(self):
        return self.table.c[self.child_column]


def coerce_value(column, value: Any) -> Any:
    """Coerce a raw query string value to the column's type."""
    if isinstance(value, list):
        return [coerce_value(column, item) for item in value]

    column_type = column.type
    if isinstance(column_type, JSON):
        raise BadRequestError(f"Cannot filter on {column.key}")
    if isinstance(column_type, Boolean):
        lowered = str(value).lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise BadRequestError(f"Invalid boolean for {column.key}: {value}")
    if isinstance(column_type, Integer):
        try:
            return int(value)
        except ValueError:
            raise BadRequestError(f"Invalid integer for {column.key}: {value}")
    if isinstance(column_type, DateTime):
        try:
            return from_iso8601(value)
        except ValueError:
            raise BadRequestError(f"Invalid datetime for {column.key}: {value}")
    return value


def apply_operator(column, operator: str, value: Any):
    """Build a SQL condition for one filter operator."""
    if operator == "like" and not isinstance(column.type, String):
        raise BadRequestError(f"Operator like only applies to text fields, not {column.key}")
    if operator == "eq":
        return column == value
    if operator == "ne":
        return column != value
    if operator == "lt":
        return column < value
    if operator == "lte":
        return column <= value
    if operator == "gt":
        return column > value
    if operator == "gte":
        return column >= value
    if operator == "in":
        return column.in_(value)
    if operator == "nin":
        return column.not_in(value)
    if operator == "like":
        return column.like(value)
    raise BadRequestError(f"Unknown filter operator: {operator}")


def resolve_column(model: type[Base], resource_type: str, name: str):
    """Map a public field name (or attribute name) to a model column."""
    fields = RESOURCE_FIELDS[resource_type]
    attribute = fields.get(name)
    if attribute is None and name in fields.values():
        attribute = name
    if attribute is None:
        raise BadRequestError(f"Unknown field for {resource_type}: {name}")
    return getattr(model, attribute)


async def paginate(
    db: AsyncSession,
    stmt: Select,
    model: type[Base],
    resource_type: str,
    descriptor: QueryDescriptor,
    default_order: str,
) -> Page[Any]:
    """Apply filters, ordering and paging from a descriptor to a select."""
    for name, operations in descriptor.filters.items():
        column = resolve_column(model, resource_type, name)
        for operator, raw in operations.items():
            stmt = stmt.where(apply_operator(column, operator, coerce_value(column, raw)))

    # Count total
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = await db.scalar(count_stmt) or 0

    # Apply ordering, id last so paging is stable
    order_by = descriptor.order_by or [(default_order, False)]
    for name, descending in order_by:
        column = resolve_column(model, resource_type, name)
        if isinstance(column.type, JSON):
            raise BadRequestError(f"Cannot sort on {name}")
        stmt = stmt.order_by(column.desc() if descending else column.asc())
    stmt = stmt.order_by(model.id.asc())

    stmt = stmt.offset(descriptor.offset).limit(descriptor.limit)
    result = await db.execute(stmt)

    return Page(
        results=list(result.scalars().all()),
        total=total,
        limit=descriptor.limit,
        offset=descriptor.offset,
    )


async def delete_owned_rows(db: AsyncSession, model: type[Base], ids: list[str]) -> None:
    """Delete join and metadata rows keyed by the given IDs of a model."""
    table_name = model.__tablename__
    for table in Base.metadata.tables.values():
        for column in table.columns:
            if not column.primary_key:
                continue
            if any(fk.column.table.name == table_name for fk in column.foreign_keys):
                await db.execute(delete(table).where(column.in_(ids)))


class BaseRepository(Generic[ModelT]):
    """
    Base repository providing CRUD, collection queries and grants.

    Every mutating method is its own transaction: committed on success,
    rolled back on any error.

    Usage:
        class GroupRepository(BaseRepository[Group]):
            model = Group
            resource_type = "groups"
            required_fields = frozenset({"organization_id", "name"})
            mutable_fields = frozenset({"organization_id", "name", "attributes", "active"})

        repo = GroupRepository(db)
        group_id = await repo.create({"organization_id": org_id, "name": "admins"})
        page = await repo.list(parse_query(request.query_params))
    """

    model: Type[ModelT]
    resource_type: str
    default_order: str = "name"
    required_fields: frozenset[str] = frozenset()
    mutable_fields: frozenset[str] = frozenset()
    conflict_error: type[NameConflictError] = NameConflictError
    relations: dict[str, Relation] = {}

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """Run a block as one transaction."""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    def _base_query(self) -> Select:
        """Base query - override to add default filters."""
        return select(self.model)

    async def get_by_id(self, id: str) -> ModelT | None:
        """Get entity by ID."""
        stmt = self._base_query().where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, id: str) -> ModelT:
        """Get entity by ID or raise NotFoundError."""
        entity = await self.get_by_id(id)
        if entity is None:
            raise NotFoundError(f"{self.resource_type} {id} does not exist")
        return entity

    async def get_one(self, **filters) -> ModelT | None:
        """Get single entity by filters."""
        stmt = self._base_query()
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list(
        self,
        descriptor: QueryDescriptor,
        restrict_ids: Iterable[str] | None = None,
    ) -> Page[ModelT]:
        """
        List entities matching a query descriptor.

        Args:
            descriptor: Parsed filters, ordering and paging
            restrict_ids: Only consider these IDs (self-scoped listings)
        """
        stmt = self._base_query()
        if restrict_ids is not None:
            stmt = stmt.where(self.model.id.in_(list(restrict_ids)))
        return await paginate(
            self.db, stmt, self.model, self.resource_type, descriptor, self.default_order
        )

    # ------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------

    def _check_fields(self, fields: dict[str, Any], *, creating: bool) -> None:
        unexpected = set(fields) - self.mutable_fields
        if unexpected:
            raise BadRequestError(f"Unexpected field(s): {', '.join(sorted(unexpected))}")
        if creating:
            missing = self.required_fields - {k for k, v in fields.items() if v is not None}
            if missing:
                raise BadRequestError(f"Missing required field(s): {', '.join(sorted(missing))}")

        columns = self.model.__table__.c
        nulls = [k for k, v in fields.items() if v is None and not columns[k].nullable]
        if nulls:
            raise BadRequestError(f"Field(s) cannot be null: {', '.join(sorted(nulls))}")

    async def _validate(self, fields: dict[str, Any], current: ModelT | None) -> None:
        """
        Check references and uniqueness before a write.

        ``current`` is the entity being updated (None on create). Override
        per entity.
        """

    async def _require_reference(self, model: type[Base], id: str, field: str) -> None:
        stmt = select(func.count()).select_from(model).where(model.id == id)
        if not await self.db.scalar(stmt):
            raise InvalidReferenceError(f"{field} {id} does not exist")

    async def _require_unique(self, current: ModelT | None, **criteria: Any) -> None:
        stmt = select(self.model.id)
        for field, value in criteria.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        if current is not None:
            stmt = stmt.where(self.model.id != current.id)
        if (await self.db.execute(stmt.limit(1))).first() is not None:
            raise self.conflict_error()

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    def _prepare(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Transform validated fields into column values."""
        return fields

    async def _after_insert(self, entity: ModelT) -> None:
        """Hook run inside the create transaction."""

    async def _after_update(self, entity: ModelT, fields: dict[str, Any]) -> None:
        """Hook run inside the update transaction."""

    async def _before_delete(self, entity: ModelT) -> None:
        """Hook run inside the delete transaction, before the row goes."""

    async def create(self, fields: dict[str, Any]) -> str:
        """
        Create a new entity and return its generated ID.

        Raises:
            BadRequestError: Missing or unexpected fields
            InvalidReferenceError: A referenced ID does not exist
            NameConflictError: Uniqueness violated
        """
        self._check_fields(fields, creating=True)
        async with self.atomic():
            await self._validate(fields, None)
            entity = self.model(**self._prepare(fields))
            self.db.add(entity)
            try:
                await self.db.flush()
            except IntegrityError:
                # Lost a race against a concurrent insert
                raise self.conflict_error()
            await self._after_insert(entity)
            await self.db.refresh(entity)
        return entity.id

    async def update(self, id: str, fields: dict[str, Any]) -> ModelT:
        """
        Apply a partial update.

        Raises:
            NotFoundError: ID does not exist
        """
        self._check_fields(fields, creating=False)
        async with self.atomic():
            entity = await self.get(id)
            await self._validate(fields, entity)
            for field, value in self._prepare(fields).items():
                setattr(entity, field, value)
            try:
                await self.db.flush()
            except IntegrityError:
                raise self.conflict_error()
            await self._after_update(entity, fields)
            await self.db.refresh(entity)
        return entity

    async def delete(self, id: str) -> bool:
        """Delete an entity and its join rows. Returns whether it existed."""
        async with self.atomic():
            entity = await self.get_by_id(id)
            if entity is None:
                return False
            await self._before_delete(entity)
            await delete_owned_rows(self.db, self.model, [entity.id])
            await self.db.delete(entity)
            await self.db.flush()
        return True

    # ------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------

    def _relation(self, name: str) -> Relation:
        try:
            return self.relations[name]
        except KeyError:
            raise NotFoundError(f"Unknown relation {self.resource_type}.{name}")

    async def granted_ids(self, relation: str, parent_id: str) -> list[str]:
        """IDs granted to a parent through a relation."""
        rel = self._relation(relation)
        result = await self.db.execute(select(rel.child).where(rel.parent == parent_id))
        return list(result.scalars().all())

    async def grant(self, relation: str, parent_id: str, child_ids: Iterable[str]) -> list[str]:
        """
        Grant children to a parent, all or nothing.

        Already granted children are skipped. Returns the newly granted IDs.

        Raises:
            NotFoundError: Parent does not exist
            InvalidReferenceError: Any child does not exist (nothing granted)
        """
        rel = self._relation(relation)
        wanted = list(dict.fromkeys(child_ids))

        async with self.atomic():
            await self.get(parent_id)
            if not wanted:
                return []

            result = await self.db.execute(
                select(rel.child_model.id).where(rel.child_model.id.in_(wanted))
            )
            found = set(result.scalars().all())
            missing = [child_id for child_id in wanted if child_id not in found]
            if missing:
                raise InvalidReferenceError(f"Invalid {relation} ID(s): {', '.join(missing)}")

            result = await self.db.execute(
                select(rel.child).where(rel.parent == parent_id, rel.child.in_(wanted))
            )
            already = set(result.scalars().all())
            new_ids = [child_id for child_id in wanted if child_id not in already]
            if new_ids:
                await self.db.execute(
                    insert(rel.table),
                    [{rel.parent_column: parent_id, rel.child_column: child_id} for child_id in new_ids],
                )
        return new_ids

    async def _before_revoke(self, relation: str, entity: ModelT, child_ids: list[str]) -> None:
        """Hook run inside the revoke transaction."""

    async def revoke(self, relation: str, parent_id: str, child_ids: Iterable[str]) -> int:
        """
        Revoke children from a parent. Non-granted IDs are ignored.

        Returns the number of grants removed.
        """
        rel = self._relation(relation)
        ids = list(dict.fromkeys(child_ids))

        async with self.atomic():
            entity = await self.get(parent_id)
            if not ids:
                return 0
            await self._before_revoke(relation, entity, ids)
            result = await self.db.execute(
                delete(rel.table).where(rel.parent == parent_id, rel.child.in_(ids))
            )
        return result.rowcount or 0

    async def list_related(
        self,
        relation: str,
        parent_id: str,
        descriptor: QueryDescriptor,
    ) -> Page[Any]:
        """List the children granted to a parent."""
        rel = self._relation(relation)
        await self.get(parent_id)
        granted = select(rel.child).where(rel.parent == parent_id)
        stmt = select(rel.child_model).where(rel.child_model.id.in_(granted))
        return await paginate(
            self.db, stmt, rel.child_model, rel.child_resource, descriptor, rel.child_order
        )
