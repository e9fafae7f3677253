# Services package init
"""
Taskforge Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and stores (persistence).
How:   Services are assembled per request by FastAPI dependencies
       (taskforge/dependencies.py) from the request's session and the
       process-wide TokenService / PasswordHasher.

Service Inventory:
    - AuthService:     login, register, refresh, token → user id
    - ResourceService: authenticated owner-scoped CRUD with pagination
    - UserService:     the caller's own profile
"""
