"""
Taskforge Backend — HTTP API Tests
====================================

What:  End-to-end behaviour of the REST surface through the full app
       (middleware, dependencies, exception handlers, SQLite database).
How:   HTTPX AsyncClient over ASGITransport; see conftest.py.

What we test:
    ✅ register → login round trip, camelCase bodies, no password hash leaks
    ✅ failed logins are indistinguishable
    ✅ every task endpoint demands a bearer token (401 before body checks)
    ✅ tasks are invisible to other users (404, same as a missing id)
    ✅ pagination across pages, query validation, filters
    ✅ error body shape {error, message, statusCode} for every status
    ✅ /health, X-Request-ID, /api/users/me, token refresh
"""

import math
import uuid
from datetime import datetime, timedelta, timezone

import pytest

DEFAULT_PASSWORD = "pw123456"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def utc_offset(timestamp):
    return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).utcoffset()


async def create_tasks(client, headers, count, prefix="Task"):
    created = []
    for i in range(count):
        response = await client.post("/api/tasks", json={"title": f"{prefix} {i}"}, headers=headers)
        assert response.status_code == 200, response.text
        created.append(response.json())
    return created


def assert_error(response, status_code, error, message=None):
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["error"] == error
    assert body["statusCode"] == status_code
    assert isinstance(body["message"], str) and body["message"]
    if message is not None:
        assert body["message"] == message


class TestScenario:

    @pytest.mark.asyncio
    async def test_register_bad_login_then_paginate(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "a@x.com", "password": "pw123456", "name": "A"},
        )
        assert response.status_code == 200
        registered = response.json()
        assert registered["user"]["email"] == "a@x.com"
        headers = bearer(registered["token"])

        response = await test_client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "wrongpw"}
        )
        assert_error(response, 401, "Unauthenticated", "Invalid email or password")

        await create_tasks(test_client, headers, 25)

        response = await test_client.get("/api/tasks?page=2&limit=20", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 5
        assert body["pagination"] == {"page": 2, "limit": 20, "total": 25, "totalPages": 2}


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_register_response_shape(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "new@example.com", "password": DEFAULT_PASSWORD, "name": "New"},
        )
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"user", "token", "expiresIn"}
        assert body["expiresIn"] == 7 * 24 * 60 * 60
        assert set(body["user"]) == {"id", "email", "name", "createdAt", "updatedAt"}
        assert body["user"]["name"] == "New"

    @pytest.mark.asyncio
    async def test_register_then_login_same_user(self, test_client, register_user, token_service):
        registered, _ = await register_user("round@trip.com")

        response = await test_client.post(
            "/api/auth/login", json={"email": "round@trip.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200
        logged_in = response.json()

        assert logged_in["user"]["id"] == registered["user"]["id"]
        assert token_service.verify(logged_in["token"]) == registered["user"]["id"]
        assert token_service.verify(registered["token"]) == registered["user"]["id"]

    @pytest.mark.asyncio
    async def test_duplicate_registration_conflicts(self, test_client, register_user):
        await register_user("dup@example.com")
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "dup@example.com", "password": DEFAULT_PASSWORD, "name": "Again"},
        )
        assert_error(response, 409, "Conflict", "User with this email already exists")

    @pytest.mark.asyncio
    async def test_failed_logins_are_identical(self, test_client, register_user):
        await register_user("known@example.com")

        unknown = await test_client.post(
            "/api/auth/login", json={"email": "unknown@example.com", "password": "whatever1"}
        )
        wrong = await test_client.post(
            "/api/auth/login", json={"email": "known@example.com", "password": "whatever1"}
        )

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.content == wrong.content

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "not-an-email", "password": DEFAULT_PASSWORD, "name": "X"},
            {"email": "short@example.com", "password": "short", "name": "X"},
            {"email": "noname@example.com", "password": DEFAULT_PASSWORD, "name": ""},
            {"email": "missing@example.com"},
        ],
    )
    async def test_register_validation(self, test_client, payload):
        response = await test_client.post("/api/auth/register", json=payload)
        assert_error(response, 400, "ValidationError")
        assert response.json()["details"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "password",
        [
            "pw12\u00003456",
            "a" * 73,
            # 37 characters, 74 UTF-8 bytes
            "é" * 37,
        ],
    )
    async def test_register_rejects_passwords_bcrypt_cannot_hash(self, test_client, password):
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "pw@example.com", "password": password, "name": "Pw"},
        )
        assert_error(response, 400, "ValidationError")
        assert response.json()["details"][0]["field"] == "password"

    @pytest.mark.asyncio
    async def test_register_accepts_72_byte_password(self, test_client):
        password = "a" * 72
        response = await test_client.post(
            "/api/auth/register",
            json={"email": "long@example.com", "password": password, "name": "Long"},
        )
        assert response.status_code == 200

        response = await test_client.post(
            "/api/auth/login", json={"email": "long@example.com", "password": password + "b"}
        )
        assert_error(response, 401, "Unauthenticated", "Invalid email or password")

    @pytest.mark.asyncio
    async def test_login_with_nul_password_is_bad_credentials(self, test_client, register_user):
        await register_user("nul@example.com")
        response = await test_client.post(
            "/api/auth/login", json={"email": "nul@example.com", "password": "pw12\u00003456"}
        )
        assert_error(response, 401, "Unauthenticated", "Invalid email or password")

    @pytest.mark.asyncio
    async def test_refresh(self, test_client, register_user, token_service):
        registered, _ = await register_user("refresh@example.com")

        response = await test_client.post("/api/auth/refresh", json={"token": registered["token"]})
        assert response.status_code == 200
        body = response.json()
        assert body["expiresIn"] == 7 * 24 * 60 * 60
        assert token_service.verify(body["token"]) == registered["user"]["id"]

    @pytest.mark.asyncio
    async def test_refresh_rejects_garbage(self, test_client):
        response = await test_client.post("/api/auth/refresh", json={"token": "garbage"})
        assert_error(response, 401, "Unauthenticated")


class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/tasks"),
            ("POST", "/api/tasks"),
            ("GET", f"/api/tasks/{uuid.uuid4()}"),
            ("PATCH", f"/api/tasks/{uuid.uuid4()}"),
            ("DELETE", f"/api/tasks/{uuid.uuid4()}"),
            ("GET", "/api/users/me"),
        ],
    )
    async def test_missing_token(self, test_client, method, path):
        response = await test_client.request(method, path, json={"title": "x"})
        assert_error(response, 401, "Unauthenticated")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["Bearer not-a-jwt", "Basic dXNlcjpwdw==", "Bearer"])
    async def test_invalid_authorization_header(self, test_client, header):
        response = await test_client.get("/api/tasks", headers={"Authorization": header})
        assert_error(response, 401, "Unauthenticated")

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client, token_service, register_user):
        registered, _ = await register_user("expired@example.com")
        stale = token_service.issue(
            registered["user"]["id"], now=datetime.now(timezone.utc) - timedelta(days=8)
        )
        response = await test_client.get("/api/tasks", headers=bearer(stale.token))
        assert_error(response, 401, "Unauthenticated")

    @pytest.mark.asyncio
    async def test_unauthenticated_wins_over_bad_body(self, test_client):
        response = await test_client.post("/api/tasks", json={"title": 42, "completed": "maybe"})
        assert response.status_code == 401


class TestTaskCrud:

    @pytest.mark.asyncio
    async def test_create_and_get_round_trip(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/tasks",
            json={"title": "Write docs", "description": "README first"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        created = response.json()
        assert created["completed"] is False
        assert set(created) == {
            "id", "userId", "title", "description", "completed", "createdAt", "updatedAt",
        }

        response = await test_client.get(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        fetched = response.json()
        for key in ("id", "userId", "title", "description", "completed"):
            assert fetched[key] == created[key]

    @pytest.mark.asyncio
    async def test_empty_description_stored_as_null(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/tasks", json={"title": "No details", "description": ""}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["description"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "   "}, {"title": None}])
    async def test_create_requires_title(self, test_client, auth_headers, payload):
        response = await test_client.post("/api/tasks", json=payload, headers=auth_headers)
        assert_error(response, 400, "ValidationError")

    @pytest.mark.asyncio
    async def test_patch_updates_given_fields(self, test_client, auth_headers):
        (task,) = await create_tasks(test_client, auth_headers, 1)

        response = await test_client.patch(
            f"/api/tasks/{task['id']}", json={"completed": True}, headers=auth_headers
        )
        assert response.status_code == 200
        updated = response.json()
        assert updated["completed"] is True
        assert updated["title"] == task["title"]
        assert updated["createdAt"] == task["createdAt"]

    @pytest.mark.asyncio
    async def test_patch_can_clear_description(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/tasks", json={"title": "x", "description": "old"}, headers=auth_headers
        )
        task_id = response.json()["id"]

        response = await test_client.patch(
            f"/api/tasks/{task_id}", json={"description": None}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["description"] is None

    @pytest.mark.asyncio
    async def test_empty_patch_rejected_and_nothing_changes(self, test_client, auth_headers):
        (task,) = await create_tasks(test_client, auth_headers, 1)

        response = await test_client.patch(f"/api/tasks/{task['id']}", json={}, headers=auth_headers)
        assert_error(response, 400, "ValidationError", "At least one field must be provided")

        response = await test_client.get(f"/api/tasks/{task['id']}", headers=auth_headers)
        assert response.json()["updatedAt"] == task["updatedAt"]

    @pytest.mark.asyncio
    async def test_patch_blank_title_rejected(self, test_client, auth_headers):
        (task,) = await create_tasks(test_client, auth_headers, 1)
        response = await test_client.patch(
            f"/api/tasks/{task['id']}", json={"title": None}, headers=auth_headers
        )
        assert_error(response, 400, "ValidationError")

    @pytest.mark.asyncio
    async def test_patch_null_completed_rejected_and_row_kept(self, test_client, auth_headers):
        (task,) = await create_tasks(test_client, auth_headers, 1)

        response = await test_client.patch(
            f"/api/tasks/{task['id']}", json={"completed": None}, headers=auth_headers
        )
        assert_error(response, 400, "ValidationError")

        response = await test_client.get(f"/api/tasks/{task['id']}", headers=auth_headers)
        assert response.json()["completed"] is False
        assert response.json()["updatedAt"] == task["updatedAt"]

    @pytest.mark.asyncio
    async def test_timestamps_carry_utc_offset(self, test_client, auth_headers):
        (task,) = await create_tasks(test_client, auth_headers, 1)
        fetched = (await test_client.get(f"/api/tasks/{task['id']}", headers=auth_headers)).json()

        for body in (task, fetched):
            assert utc_offset(body["createdAt"]) == timedelta(0)
            assert utc_offset(body["updatedAt"]) == timedelta(0)
        assert fetched["createdAt"] == task["createdAt"]

    @pytest.mark.asyncio
    async def test_delete(self, test_client, auth_headers):
        (task,) = await create_tasks(test_client, auth_headers, 1)

        response = await test_client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        response = await test_client.get(f"/api/tasks/{task['id']}", headers=auth_headers)
        assert_error(response, 404, "NotFound", "Task not found")

        response = await test_client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
        assert_error(response, 404, "NotFound")

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, test_client, auth_headers):
        response = await test_client.get("/api/tasks/not-a-uuid", headers=auth_headers)
        assert_error(response, 404, "NotFound", "Task not found")


class TestOwnership:

    @pytest.mark.asyncio
    async def test_other_user_gets_not_found(self, test_client, register_user):
        _, alice = await register_user("alice@example.com")
        _, bob = await register_user("bob@example.com")
        (task,) = await create_tasks(test_client, alice, 1)
        path = f"/api/tasks/{task['id']}"

        missing = await test_client.get(f"/api/tasks/{uuid.uuid4()}", headers=bob)
        foreign_get = await test_client.get(path, headers=bob)
        foreign_patch = await test_client.patch(path, json={"completed": True}, headers=bob)
        foreign_delete = await test_client.delete(path, headers=bob)

        for response in (foreign_get, foreign_patch, foreign_delete):
            assert_error(response, 404, "NotFound")
            assert response.content == missing.content

        response = await test_client.get(path, headers=alice)
        assert response.status_code == 200
        assert response.json()["completed"] is False

    @pytest.mark.asyncio
    async def test_lists_are_per_user(self, test_client, register_user):
        _, alice = await register_user("alice@example.com")
        _, bob = await register_user("bob@example.com")
        await create_tasks(test_client, alice, 3, prefix="Alice")
        await create_tasks(test_client, bob, 2, prefix="Bob")

        response = await test_client.get("/api/tasks", headers=bob)
        body = response.json()
        assert body["pagination"]["total"] == 2
        assert all(item["title"].startswith("Bob") for item in body["data"])


class TestListing:

    @pytest.mark.asyncio
    async def test_defaults(self, test_client, auth_headers):
        await create_tasks(test_client, auth_headers, 3)
        response = await test_client.get("/api/tasks", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        assert response.json()["pagination"] == {"page": 1, "limit": 20, "total": 3, "totalPages": 1}

    @pytest.mark.asyncio
    async def test_empty_list(self, test_client, auth_headers):
        response = await test_client.get("/api/tasks", headers=auth_headers)
        body = response.json()
        assert body["data"] == []
        assert body["pagination"]["totalPages"] == 0

    @pytest.mark.asyncio
    async def test_pages_partition_all_tasks(self, test_client, auth_headers):
        created = await create_tasks(test_client, auth_headers, 7)
        limit = 3

        seen = []
        for page in range(1, math.ceil(7 / limit) + 1):
            response = await test_client.get(
                f"/api/tasks?page={page}&limit={limit}", headers=auth_headers
            )
            body = response.json()
            assert body["pagination"]["totalPages"] == 3
            seen.extend(body["data"])

        assert len(seen) == 7
        assert {t["id"] for t in seen} == {t["id"] for t in created}
        created_at = [t["createdAt"] for t in seen]
        assert created_at == sorted(created_at, reverse=True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "query", ["page=0", "page=-2", "limit=0", "limit=101", "page=abc", "limit=ten"]
    )
    async def test_out_of_range_query_rejected(self, test_client, auth_headers, query):
        response = await test_client.get(f"/api/tasks?{query}", headers=auth_headers)
        assert_error(response, 400, "ValidationError")

    @pytest.mark.asyncio
    async def test_limit_upper_bound_accepted(self, test_client, auth_headers):
        response = await test_client.get("/api/tasks?limit=100", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["pagination"]["limit"] == 100

    @pytest.mark.asyncio
    async def test_completed_filter(self, test_client, auth_headers):
        tasks = await create_tasks(test_client, auth_headers, 4)
        for task in tasks[:3]:
            await test_client.patch(
                f"/api/tasks/{task['id']}", json={"completed": True}, headers=auth_headers
            )

        done = (await test_client.get("/api/tasks?completed=true", headers=auth_headers)).json()
        todo = (await test_client.get("/api/tasks?completed=false", headers=auth_headers)).json()

        assert done["pagination"]["total"] == 3
        assert all(t["completed"] for t in done["data"])
        assert todo["pagination"]["total"] == 1


class TestUsersMe:

    @pytest.mark.asyncio
    async def test_get_me(self, test_client, register_user):
        registered, headers = await register_user("me@example.com", name="Me")
        response = await test_client.get("/api/users/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == registered["user"]["id"]
        assert "passwordHash" not in response.json()

    @pytest.mark.asyncio
    async def test_update_me(self, test_client, register_user):
        _, headers = await register_user("me@example.com", name="Me")
        response = await test_client.patch("/api/users/me", json={"name": "  Renamed  "}, headers=headers)
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    @pytest.mark.asyncio
    async def test_update_me_to_taken_email(self, test_client, register_user):
        await register_user("taken@example.com")
        _, headers = await register_user("me@example.com")
        response = await test_client.patch(
            "/api/users/me", json={"email": "taken@example.com"}, headers=headers
        )
        assert_error(response, 409, "Conflict")

    @pytest.mark.asyncio
    async def test_update_me_without_fields(self, test_client, auth_headers):
        response = await test_client.patch("/api/users/me", json={}, headers=auth_headers)
        assert_error(response, 400, "ValidationError")


class TestInfrastructure:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["uptimeSeconds"] >= 0

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_shape(self, test_client):
        response = await test_client.get("/api/nothing-here")
        assert_error(response, 404, "NotFound")

    @pytest.mark.asyncio
    async def test_malformed_json_body(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/tasks",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert_error(response, 400, "ValidationError")
