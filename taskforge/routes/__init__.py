# Routes package init
"""
Taskforge Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:    POST /api/auth/login | /register | /refresh
    - users.py:   GET/PATCH /api/users/me
    - tasks.py:   GET/POST /api/tasks, GET/PATCH/DELETE /api/tasks/{id}
    - health.py:  GET /health

Routes stay thin: extract data from the request, call a service, shape the
response. Errors are raised as TaskforgeError subclasses and rendered by the
handler registered in main.py.
"""
