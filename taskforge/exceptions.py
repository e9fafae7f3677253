"""
Taskforge Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions tagged with an error kind.
How:   Each exception carries a `kind` (ErrorKind), a client-safe message and an
       optional context dict. One global handler (registered in main.py) maps
       the kind to an HTTP status and returns `{error, message, statusCode}`.
Who:   Raised by services, stores and security primitives; caught by the handler.

Exception Hierarchy:
    TaskforgeError (base, kind=Internal)
    ├── ValidationError      → 400  ValidationError
    ├── UnauthenticatedError → 401  Unauthenticated
    ├── NotFoundError        → 404  NotFound
    ├── ConflictError        → 409  Conflict
    └── DatabaseError        → 500  Internal

Stores never raise for absence; they return None/False and the services
translate that into NotFoundError at the boundary.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Error taxonomy. The value is the `error` field of the response body."""

    VALIDATION = "ValidationError"
    UNAUTHENTICATED = "Unauthenticated"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    INTERNAL = "Internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class TaskforgeError(Exception):
    """
    Base exception for all Taskforge application errors.

    Attributes:
        kind:     Error kind; decides status code and `error` field
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        return {
            "error": self.kind.value,
            "message": self.message,
            "statusCode": self.status_code,
        }


class ValidationError(TaskforgeError):
    """
    Raised when client input breaks a business rule.

    When:  Blank required field, empty update, page/limit out of range.
    HTTP:  400 Bad Request

    Shape errors (wrong JSON types, missing keys) are caught earlier by
    FastAPI and mapped to the same kind by the global handler.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthenticatedError(TaskforgeError):
    """
    Raised for missing, malformed or expired tokens and for bad credentials.

    HTTP:  401 Unauthorized

    The message is deliberately generic. Login uses a single message for
    "no such email" and "wrong password" so the two are indistinguishable.
    """

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(
        self,
        message: str = "Invalid or missing token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TaskforgeError):
    """
    Raised when a requested resource does not exist for the caller.

    When:  Unknown id, or an id owned by another user (same response for both).
    HTTP:  404 Not Found
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(TaskforgeError):
    """
    Raised on a uniqueness violation.

    When:  Registering (or changing to) an email that already exists.
    HTTP:  409 Conflict
    """

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TaskforgeError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:  500 Internal Server Error

    The message returned to the client is always generic; SQL and constraint
    details stay in the server log via `context`.
    """

    kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
