"""
SnipKeep Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each failure the API can report.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) turn them into
       `{"error": message}` JSON bodies with the matching status code.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    SnipKeepError (base)
    ├── ValidationError          → 400 Bad Request
    ├── ConflictError            → 400 Bad Request (duplicate username)
    ├── InvalidCredentialsError  → 400 Bad Request (login failure)
    ├── UnauthenticatedError     → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── StorageError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class SnipKeepError(Exception):
    """
    Base exception for all SnipKeep application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SnipKeepError):
    """
    Raised when client input fails a business rule.

    When:    Title out of range, empty code, bad tag list, missing fields.
    HTTP:    400 Bad Request
    """

    status_code = 400

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


class ConflictError(SnipKeepError):
    """Username already registered. Reported as 400 like any bad registration."""

    status_code = 400

    def __init__(
        self,
        message: str = "Username exists.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(SnipKeepError):
    """
    Raised when login fails.

    The same message is used for an unknown username and for a wrong
    password so callers cannot probe which accounts exist.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid login.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthenticatedError(SnipKeepError):
    """No session cookie, or the session it names has expired. HTTP 401."""

    status_code = 401

    def __init__(
        self,
        message: str = "Not logged in",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(SnipKeepError):
    """
    Raised when an authenticated user touches a snippet they do not own.

    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SnipKeepError):
    """
    Raised when a requested resource does not exist.

    When:    PUT/DELETE /snippets/{id} with an unknown id.
    HTTP:    404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message="Not found", context=ctx)


class RateLimitExceededError(SnipKeepError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class StorageError(SnipKeepError):
    """
    Raised when reading or writing a JSON collection fails.

    When:    Permission denied, disk full, corrupt JSON on disk.
    HTTP:    500 Internal Server Error

    Security Note:
        The response always carries a generic message. File paths and the
        OS error are kept in `context` and only logged server-side.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
