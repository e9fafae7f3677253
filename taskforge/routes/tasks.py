"""
Taskforge Backend — Tasks Route Handlers
==========================================

What:  CRUD endpoints for the caller's tasks under /api/tasks.
How:   Thin handlers: extract params, call ResourceService, shape the JSON.
       Every endpoint requires a bearer token (require_token).

Endpoints:
    GET    /api/tasks?page=&limit=&completed=&createdAfter=&createdBefore=
    POST   /api/tasks
    GET    /api/tasks/{task_id}
    PATCH  /api/tasks/{task_id}
    DELETE /api/tasks/{task_id}

`task_id` is taken as a plain string: an id that is not a UUID is answered
with the same 404 as an unknown id.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from taskforge.config import Settings
from taskforge.dependencies import get_settings, get_task_service, require_token
from taskforge.models.task import Task
from taskforge.schemas.common import ErrorResponse, PaginationMeta, SuccessResponse
from taskforge.schemas.task import (
    CreateTaskRequest,
    TaskListResponse,
    TaskResponse,
    UpdateTaskRequest,
)
from taskforge.services.resource_service import ResourceService

router = APIRouter(
    prefix="/api/tasks",
    tags=["Tasks"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)

NOT_FOUND_RESPONSE = {404: {"description": "Task not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=TaskListResponse,
    responses={400: {"description": "page/limit out of range", "model": ErrorResponse}},
    summary="List the caller's tasks, newest first",
)
async def list_tasks(
    response: Response,
    page: int = Query(default=1, description="1-based page number"),
    limit: Optional[int] = Query(default=None, description="Page size (1-100, default 20)"),
    completed: Optional[bool] = Query(default=None, description="Only tasks with this completion state"),
    created_after: Optional[datetime] = Query(
        default=None, alias="createdAfter", description="Only tasks created at or after (ISO 8601)"
    ),
    created_before: Optional[datetime] = Query(
        default=None, alias="createdBefore", description="Only tasks created at or before (ISO 8601)"
    ),
    token: str = Depends(require_token),
    tasks: ResourceService[Task] = Depends(get_task_service),
    settings: Settings = Depends(get_settings),
) -> TaskListResponse:
    result = await tasks.list(
        token,
        page=page,
        page_size=limit if limit is not None else settings.default_page_size,
        filters={
            "completed": completed,
            "created_at__gte": created_after,
            "created_at__lte": created_before,
        },
    )

    response.headers["X-Total-Count"] = str(result.pagination.total)

    return TaskListResponse(
        data=[TaskResponse.model_validate(task) for task in result.items],
        pagination=PaginationMeta(
            page=result.pagination.page,
            limit=result.pagination.limit,
            total=result.pagination.total,
            total_pages=result.pagination.total_pages,
        ),
    )


@router.post(
    "",
    response_model=TaskResponse,
    responses={400: {"description": "Invalid task", "model": ErrorResponse}},
    summary="Create a task",
)
async def create_task(
    body: CreateTaskRequest,
    token: str = Depends(require_token),
    tasks: ResourceService[Task] = Depends(get_task_service),
) -> TaskResponse:
    fields = body.model_dump(exclude_unset=True)
    # An empty description is stored as NULL
    if not fields.get("description"):
        fields["description"] = None
    task = await tasks.create(token, fields)
    return TaskResponse.model_validate(task)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Get one of the caller's tasks",
)
async def get_task(
    task_id: str,
    token: str = Depends(require_token),
    tasks: ResourceService[Task] = Depends(get_task_service),
) -> TaskResponse:
    task = await tasks.get(token, task_id)
    return TaskResponse.model_validate(task)


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    responses={
        400: {"description": "No fields supplied or invalid value", "model": ErrorResponse},
        **NOT_FOUND_RESPONSE,
    },
    summary="Update fields of one of the caller's tasks",
)
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    token: str = Depends(require_token),
    tasks: ResourceService[Task] = Depends(get_task_service),
) -> TaskResponse:
    task = await tasks.update(token, task_id, body.model_dump(exclude_unset=True))
    return TaskResponse.model_validate(task)


@router.delete(
    "/{task_id}",
    response_model=SuccessResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Delete one of the caller's tasks",
)
async def delete_task(
    task_id: str,
    token: str = Depends(require_token),
    tasks: ResourceService[Task] = Depends(get_task_service),
) -> SuccessResponse:
    result = await tasks.delete(token, task_id)
    return SuccessResponse(success=result["success"])
