"""
Taskforge Backend — Task Request/Response Schemas
===================================================

What:  API contract for the tasks resource.
How:   Create/Update bodies are validated here; routes pass
       `model_dump(exclude_unset=True)` to the service so "field omitted" and
       "field set to null" stay distinguishable (description can be cleared).
"""

import uuid
from typing import Optional

from pydantic import Field, model_validator

from taskforge.schemas.common import ApiModel, PaginatedResponse, UtcDatetime


class TaskResponse(ApiModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    completed: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime


class CreateTaskRequest(ApiModel):
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=10_000)


class UpdateTaskRequest(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, max_length=10_000)
    completed: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_completed(self) -> "UpdateTaskRequest":
        # Omitting `completed` leaves it alone; sending null is not a state
        if "completed" in self.model_fields_set and self.completed is None:
            raise ValueError("'completed' must be true or false")
        return self


class TaskListResponse(PaginatedResponse[TaskResponse]):
    pass
