"""
Taskforge Backend — Owner-Scoped Resource Store
=================================================

What:  Generic persistence for "owned" entities (rows carrying an owner id).
How:   Parameterized over an ORM model class. Every query is built on top of
       the owner predicate, so no operation can reach another user's rows.
Who:   ResourceService. One store per request, wrapping that request's session.

Operations:
    insert(owner_id, fields)                        → entity
    find_one(id, owner_id)                          → entity | None
    find_page(owner_id, filters, page, page_size)   → Page(items, total)
    update(id, owner_id, fields)                    → entity | None
    delete(id, owner_id)                            → bool

Absence is a return value (None/False), never an exception. A caller cannot
tell "does not exist" from "belongs to someone else".

Filters:
    {"completed": True}                  → completed = true
    {"created_at__gte": dt}              → created_at >= dt
    {"created_at__lte": dt}              → created_at <= dt
    Keys whose value is None are ignored.

Ordering is newest first (created_at DESC) with id DESC as a stable tie-break.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.database import Base
from taskforge.exceptions import DatabaseError
from taskforge.models.user import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# Columns the store manages itself; callers can never set them
SERVER_MANAGED = frozenset({"id", "created_at", "updated_at"})

_RANGE_OPERATORS = {
    "gte": lambda column, value: column >= value,
    "lte": lambda column, value: column <= value,
    "gt": lambda column, value: column > value,
    "lt": lambda column, value: column < value,
}


@dataclass
class Page(Generic[ModelT]):
    """One page of results plus the total matching the same predicate."""

    items: List[ModelT] = field(default_factory=list)
    total: int = 0


class ResourceStore(Generic[ModelT]):
    """
    Owner-scoped CRUD for one ORM model.

    Args:
        db:            Request-scoped async session
        model:         ORM class; must have `id`, `created_at`, `updated_at`
                       and the owner column
        owner_field:   Name of the owner column (default "user_id")
        mutable_fields: Columns `update()` may change; defaults to every
                       column except the owner and server-managed ones
    """

    def __init__(
        self,
        db: AsyncSession,
        model: Type[ModelT],
        owner_field: str = "user_id",
        mutable_fields: Optional[Iterable[str]] = None,
    ):
        self.db = db
        self.model = model
        self.owner_field = owner_field
        self._columns = {attr.key for attr in inspect(model).column_attrs}
        if owner_field not in self._columns:
            raise ValueError(f"{model.__name__} has no owner column '{owner_field}'")

        writable = self._columns - SERVER_MANAGED - {owner_field}
        if mutable_fields is None:
            self.mutable_fields = frozenset(writable)
        else:
            self.mutable_fields = frozenset(mutable_fields)
            if not self.mutable_fields <= writable:
                raise ValueError(
                    f"Not mutable on {model.__name__}: {sorted(self.mutable_fields - writable)}"
                )

    @property
    def _owner_column(self):
        return getattr(self.model, self.owner_field)

    def _scoped(self, resource_id: uuid.UUID, owner_id: uuid.UUID) -> list:
        return [self.model.id == resource_id, self._owner_column == owner_id]

    def _predicate(self, owner_id: uuid.UUID, filters: Optional[Mapping[str, Any]]) -> list:
        """Owner predicate AND every filter clause."""
        clauses = [self._owner_column == owner_id]
        for key, value in (filters or {}).items():
            if value is None:
                continue
            name, _, op = key.partition("__")
            if name not in self._columns or name == self.owner_field:
                raise ValueError(f"Cannot filter {self.model.__name__} on '{name}'")
            column = getattr(self.model, name)
            if not op:
                clauses.append(column == value)
            elif op in _RANGE_OPERATORS:
                clauses.append(_RANGE_OPERATORS[op](column, value))
            else:
                raise ValueError(f"Unsupported filter operator '{op}'")
        return clauses

    # ── Create ────────────────────────────────────────────────────────────

    async def insert(self, owner_id: uuid.UUID, fields: Mapping[str, Any]) -> ModelT:
        bad = set(fields) - self.mutable_fields
        if bad:
            raise ValueError(f"Cannot set {self.model.__name__} fields: {sorted(bad)}")

        entity = self.model(**dict(fields), **{self.owner_field: owner_id})
        self.db.add(entity)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._wrap("insert", e)
        return entity

    # ── Read ──────────────────────────────────────────────────────────────

    async def find_one(self, resource_id: uuid.UUID, owner_id: uuid.UUID) -> Optional[ModelT]:
        query = select(self.model).where(*self._scoped(resource_id, owner_id))
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise self._wrap("find_one", e)
        return result.scalar_one_or_none()

    async def find_page(
        self,
        owner_id: uuid.UUID,
        filters: Optional[Mapping[str, Any]] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page[ModelT]:
        """
        Fetch page `page` (1-based) of `page_size` rows, newest first.

        SQL:
            SELECT count(*) FROM <table> WHERE <owner> AND <filters>
            SELECT * FROM <table> WHERE <owner> AND <filters>
            ORDER BY created_at DESC, id DESC LIMIT :page_size OFFSET :offset
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive")

        predicate = self._predicate(owner_id, filters)
        offset = (page - 1) * page_size

        count_query = select(func.count()).select_from(self.model).where(*predicate)
        items_query = (
            select(self.model)
            .where(*predicate)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(page_size)
        )

        try:
            total = (await self.db.execute(count_query)).scalar_one()
            items = list((await self.db.execute(items_query)).scalars().all())
        except SQLAlchemyError as e:
            raise self._wrap("find_page", e)

        return Page(items=items, total=total)

    # ── Update ────────────────────────────────────────────────────────────

    async def update(
        self,
        resource_id: uuid.UUID,
        owner_id: uuid.UUID,
        fields: Mapping[str, Any],
    ) -> Optional[ModelT]:
        """
        Apply `fields` to the row matching (id, owner). None if no such row.

        `updated_at` is refreshed on every successful update.
        """
        bad = set(fields) - self.mutable_fields
        if bad:
            raise ValueError(f"Cannot update {self.model.__name__} fields: {sorted(bad)}")

        entity = await self.find_one(resource_id, owner_id)
        if entity is None:
            return None

        for key, value in fields.items():
            setattr(entity, key, value)
        entity.updated_at = utcnow()

        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._wrap("update", e)
        return entity

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete(self, resource_id: uuid.UUID, owner_id: uuid.UUID) -> bool:
        """True iff a row matching (id, owner) was removed."""
        statement = delete(self.model).where(*self._scoped(resource_id, owner_id))
        try:
            result = await self.db.execute(statement)
        except SQLAlchemyError as e:
            raise self._wrap("delete", e)
        return (result.rowcount or 0) > 0

    def _wrap(self, operation: str, error: SQLAlchemyError) -> DatabaseError:
        logger.error(
            "Database error in %s store %s: %s",
            self.model.__name__,
            operation,
            str(error),
            exc_info=True,
        )
        return DatabaseError(
            context={
                "model": self.model.__name__,
                "operation": operation,
                "error_type": type(error).__name__,
            }
        )
