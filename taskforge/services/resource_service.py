"""
Taskforge Backend — Resource Service (authenticated owner-scoped CRUD)
========================================================================

What:  The CRUD lifecycle for an owned resource, gated by a bearer token.
How:   Resolves the caller through AuthService, applies business rules, and
       delegates persistence to a ResourceStore scoped to that caller.
Who:   Resource routes (tasks); reusable for any model with an owner column.

Request flow:
    ┌────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────────┐
    │ Route      │──▶│ AuthService  │──▶│ Business     │──▶│ Resource │
    │ (token,    │   │ token → id   │   │ rules        │   │ Store    │
    │  fields)   │   └──────────────┘   └──────────────┘   └──────────┘
    └────────────┘

Business rules (shape is already validated by the Pydantic schemas):
    - required text fields must not be blank (create and update)
    - non-null fields may be omitted but not sent as null
    - update needs at least one field
    - page >= 1 and 1 <= page_size <= max_page_size, else ValidationError
    - store None/False → NotFoundError, for "missing" and "not yours" alike
"""

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Union

from taskforge.exceptions import NotFoundError, ValidationError
from taskforge.services.auth_service import AuthService
from taskforge.stores.resource_store import ModelT, ResourceStore

logger = logging.getLogger(__name__)

ResourceId = Union[str, uuid.UUID]


@dataclass(frozen=True)
class PaginationInfo:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class ListResult(Generic[ModelT]):
    items: List[ModelT]
    pagination: PaginationInfo


class ResourceService(Generic[ModelT]):
    """
    Authenticated CRUD over one ResourceStore.

    Args:
        auth:            AuthService used to resolve the caller
        store:           ResourceStore for the resource's model
        resource_name:   Used in NotFound messages ("Task not found")
        required_fields: Text fields that may never be blank or null
        non_null_fields: Fields that may be omitted but never set to null
        max_page_size:   Upper bound for `page_size` in list()
    """

    def __init__(
        self,
        auth: AuthService,
        store: ResourceStore[ModelT],
        resource_name: str = "Resource",
        required_fields: Iterable[str] = (),
        non_null_fields: Iterable[str] = (),
        max_page_size: int = 100,
    ):
        self.auth = auth
        self.store = store
        self.resource_name = resource_name
        self.required_fields = tuple(required_fields)
        self.non_null_fields = tuple(non_null_fields)
        self.max_page_size = max_page_size

    # ── Helpers ───────────────────────────────────────────────────────────

    def _not_found(self, resource_id: ResourceId) -> NotFoundError:
        return NotFoundError(resource=self.resource_name, resource_id=str(resource_id))

    def _parse_id(self, resource_id: ResourceId) -> uuid.UUID:
        """Malformed ids cannot name any row, so they are NotFound too."""
        if isinstance(resource_id, uuid.UUID):
            return resource_id
        try:
            return uuid.UUID(str(resource_id))
        except ValueError:
            raise self._not_found(resource_id)

    def _check_required(self, fields: Mapping[str, Any], creating: bool) -> None:
        for name in self.required_fields:
            if name not in fields:
                if creating:
                    raise ValidationError(message=f"'{name}' is required", field=name)
                continue
            value = fields[name]
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(message=f"'{name}' must not be empty", field=name)
        for name in self.non_null_fields:
            if name in fields and fields[name] is None:
                raise ValidationError(message=f"'{name}' must not be null", field=name)

    # ── Operations ────────────────────────────────────────────────────────

    async def create(self, token: Optional[str], fields: Mapping[str, Any]) -> ModelT:
        owner_id = self.auth.resolve_current_user(token)
        self._check_required(fields, creating=True)
        entity = await self.store.insert(owner_id, fields)
        logger.info("Created %s %s for user %s", self.resource_name, entity.id, owner_id)
        return entity

    async def get(self, token: Optional[str], resource_id: ResourceId) -> ModelT:
        owner_id = self.auth.resolve_current_user(token)
        entity = await self.store.find_one(self._parse_id(resource_id), owner_id)
        if entity is None:
            raise self._not_found(resource_id)
        return entity

    async def list(
        self,
        token: Optional[str],
        page: int = 1,
        page_size: int = 20,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> ListResult[ModelT]:
        """
        One page of the caller's resources, newest first.

        Out-of-range `page`/`page_size` are rejected, not clamped, so the
        `pagination` block always echoes exactly what the client asked for.
        """
        owner_id = self.auth.resolve_current_user(token)

        if page < 1:
            raise ValidationError(message="'page' must be at least 1", field="page")
        if not 1 <= page_size <= self.max_page_size:
            raise ValidationError(
                message=f"'limit' must be between 1 and {self.max_page_size}",
                field="limit",
            )

        result = await self.store.find_page(owner_id, filters, page=page, page_size=page_size)
        return ListResult(
            items=result.items,
            pagination=PaginationInfo(
                page=page,
                limit=page_size,
                total=result.total,
                total_pages=math.ceil(result.total / page_size),
            ),
        )

    async def update(
        self,
        token: Optional[str],
        resource_id: ResourceId,
        fields: Mapping[str, Any],
    ) -> ModelT:
        owner_id = self.auth.resolve_current_user(token)
        if not fields:
            raise ValidationError(message="At least one field must be provided")
        self._check_required(fields, creating=False)

        entity = await self.store.update(self._parse_id(resource_id), owner_id, fields)
        if entity is None:
            raise self._not_found(resource_id)
        return entity

    async def delete(self, token: Optional[str], resource_id: ResourceId) -> Dict[str, bool]:
        owner_id = self.auth.resolve_current_user(token)
        removed = await self.store.delete(self._parse_id(resource_id), owner_id)
        if not removed:
            raise self._not_found(resource_id)
        logger.info("Deleted %s %s for user %s", self.resource_name, resource_id, owner_id)
        return {"success": True}
