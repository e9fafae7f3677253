# Security primitives package init
"""
Taskforge Backend — Security Primitives
=========================================

    - PasswordHasher: bcrypt hash/verify (passlib)
    - TokenService:   signed bearer token issue/verify/refresh (PyJWT)

Both are built once from Settings in create_app() and shared read-only.
"""

from taskforge.security.passwords import PasswordHasher
from taskforge.security.tokens import IssuedToken, TokenService

__all__ = ["IssuedToken", "PasswordHasher", "TokenService"]
