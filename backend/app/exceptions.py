"""
Inkpost Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for every failure a request can hit.
How:   Each exception class carries a user-facing message, an optional context
       dict, and the HTTP status it maps to. Global exception handlers
       (registered in main.py) turn them into `{"message": ...}` JSON bodies.
Who:   Raised by services and the auth gate; caught by global handlers.

Exception Hierarchy:
    InkpostError (base)              → 500
    ├── ValidationError              → 422 Unprocessable Entity
    ├── AuthenticationError          → 401 Unauthorized
    ├── AuthorizationError           → 403 Forbidden
    ├── NotFoundError                → 404 Not Found
    ├── FileStorageError             → 500 Internal Server Error
    └── DatabaseError                → 500 Internal Server Error

Missing and invalid bearer credentials both raise AuthenticationError, so a
client sees one status for "you are not logged in" regardless of the cause.
"""

from typing import Any, Dict, Optional


class InkpostError(Exception):
    """
    Base exception for all Inkpost application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        context:      Additional debug info (logged but NOT returned to client)
        status_code:  HTTP status the global handler responds with
        error_code:   Machine-readable code placed next to the message
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(InkpostError):
    """
    Raised when client input fails validation.

    When:    Missing fields, size limits, unsupported file types, password rules,
             duplicate emails, unknown categories.
    HTTP:    422 Unprocessable Entity

    Example response:
        {
            "error": "validation_error",
            "message": "Thumbnail must be less than 2 MB.",
            "request_id": "a1b2c3d4"
        }
    """

    status_code = 422
    error_code = "validation_error"

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


class AuthenticationError(InkpostError):
    """
    Raised when a protected route is called without a valid bearer token.

    When:    Header absent, not in "Bearer <token>" shape, bad signature,
             expired token, or claims that do not decode into an identity.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    status_code = 401
    error_code = "authentication_required"

    def __init__(
        self,
        message: str = "Not authorized, please log in.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(InkpostError):
    """
    Raised when an authenticated caller acts on a resource it does not own.

    When:    Editing or deleting another user's post.
    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(InkpostError):
    """
    Raised when a requested resource does not exist.

    When:    Unknown or malformed user/post id, authenticated user that no
             longer exists, missing media file.
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records; services convert that None
    into this exception.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found."
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(InkpostError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, file missing on delete, I/O error.
    HTTP:    500 Internal Server Error

    The file path and OS error go into `context` (logged); the client gets a
    generic message.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(InkpostError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, deadlock, unexpected constraint failure.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; SQL details are
    logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
