# Stores package init
"""
Taskforge Backend — Stores
============================

Request-scoped persistence objects wrapping one AsyncSession each.

    - UserStore:     credentials (email lookup, create, password hash/verify)
    - ResourceStore: generic owner-scoped CRUD + pagination for owned models
"""
