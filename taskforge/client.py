"""
Taskforge Backend — Async HTTP Client
=======================================

What:  Typed client for the Taskforge REST API, for scripts, other services
       and end-to-end tests.
How:   Wraps an `httpx.AsyncClient`. login/register remember the returned
       token and send it as `Authorization: Bearer <token>` afterwards.
       Any non-2xx response raises ApiError carrying the server's message.

Example:
    async with TaskforgeClient("http://localhost:3001") as client:
        await client.auth.login("a@x.com", "pw123456")
        page = await client.tasks.list(page=1, limit=20)
        task = await client.tasks.create(title="Write docs")
        await client.tasks.update(task.id, completed=True)
"""

import uuid
from typing import Any, Dict, Optional, Union

import httpx

from taskforge.schemas.auth import AuthResponse, RefreshTokenResponse
from taskforge.schemas.common import SuccessResponse
from taskforge.schemas.task import TaskListResponse, TaskResponse
from taskforge.schemas.user import UserResponse

TaskId = Union[str, uuid.UUID]


class ApiError(Exception):
    """A non-2xx response. `error` is the server's error kind when it sent one."""

    def __init__(self, message: str, status_code: int, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error


class TaskforgeClient:
    """
    Async client for the Taskforge API.

    Args:
        base_url: API root, e.g. "http://localhost:3001"
        token:    Existing bearer token, if already logged in
        transport: Optional httpx transport (ASGITransport in tests)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.auth = _AuthApi(self)
        self.users = _UsersApi(self)
        self.tasks = _TasksApi(self)

    async def __aenter__(self) -> "TaskforgeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self._http.request(method, path, json=json, params=params, headers=headers)

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise ApiError(
                message=body.get("message", "Request failed"),
                status_code=response.status_code,
                error=body.get("error"),
            )
        return response.json()


class _AuthApi:
    def __init__(self, client: TaskforgeClient):
        self._client = client

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._client.request("POST", "/api/auth/login", json={"email": email, "password": password})
        result = AuthResponse.model_validate(data)
        self._client.token = result.token
        return result

    async def register(self, email: str, password: str, name: str) -> AuthResponse:
        data = await self._client.request(
            "POST",
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        result = AuthResponse.model_validate(data)
        self._client.token = result.token
        return result

    async def refresh(self) -> RefreshTokenResponse:
        if not self._client.token:
            raise ApiError("Not logged in", status_code=401, error="Unauthenticated")
        data = await self._client.request("POST", "/api/auth/refresh", json={"token": self._client.token})
        result = RefreshTokenResponse.model_validate(data)
        self._client.token = result.token
        return result

    def logout(self) -> None:
        """Forget the token locally; the server keeps no session to end."""
        self._client.token = None


class _UsersApi:
    def __init__(self, client: TaskforgeClient):
        self._client = client

    async def get_me(self) -> UserResponse:
        return UserResponse.model_validate(await self._client.request("GET", "/api/users/me"))

    async def update_me(self, name: Optional[str] = None, email: Optional[str] = None) -> UserResponse:
        body = {key: value for key, value in {"name": name, "email": email}.items() if value is not None}
        return UserResponse.model_validate(await self._client.request("PATCH", "/api/users/me", json=body))


class _TasksApi:
    def __init__(self, client: TaskforgeClient):
        self._client = client

    async def list(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        completed: Optional[bool] = None,
    ) -> TaskListResponse:
        params: Dict[str, Any] = {}
        if page is not None:
            params["page"] = page
        if limit is not None:
            params["limit"] = limit
        if completed is not None:
            params["completed"] = str(completed).lower()
        data = await self._client.request("GET", "/api/tasks", params=params)
        return TaskListResponse.model_validate(data)

    async def get(self, task_id: TaskId) -> TaskResponse:
        return TaskResponse.model_validate(await self._client.request("GET", f"/api/tasks/{task_id}"))

    async def create(self, title: str, description: Optional[str] = None) -> TaskResponse:
        body: Dict[str, Any] = {"title": title}
        if description is not None:
            body["description"] = description
        return TaskResponse.model_validate(await self._client.request("POST", "/api/tasks", json=body))

    async def update(self, task_id: TaskId, **fields: Any) -> TaskResponse:
        """PATCH only the given fields: title, description, completed."""
        data = await self._client.request("PATCH", f"/api/tasks/{task_id}", json=fields)
        return TaskResponse.model_validate(data)

    async def delete(self, task_id: TaskId) -> SuccessResponse:
        return SuccessResponse.model_validate(await self._client.request("DELETE", f"/api/tasks/{task_id}"))
