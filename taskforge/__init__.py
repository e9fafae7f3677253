"""
Taskforge Backend — Application Package Initializer
=====================================================

What: Marks the `taskforge` directory as a Python package.
Who:  Imported by uvicorn (`taskforge.main:app`), Alembic, pytest and the HTTP client.

Architecture Note:
    The backend is layered, leaf-first:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Auth / Resource / User) │  ← identity, ownership, pagination rules
    ├─────────────────────────────────────┤
    │   Stores + Security primitives      │  ← owner-scoped rows, hashing, tokens
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every store query that touches an owned row filters by (id AND owner id).
"""

__version__ = "1.0.0"
