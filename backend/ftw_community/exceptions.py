"""
FTW Community Backend — Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception class carries a user-safe message and an optional
       context dict. Global exception handlers (registered in main.py) catch
       these and return structured JSON error responses.
Who:   Raised by services, the scope resolver, and middleware.
When:  During request processing. Every one of them is terminal for the
       request; nothing here is retried.

Exception Hierarchy:
    CommunityError (base)
    ├── ValidationError           → 400 Bad Request
    ├── AuthenticationFailure     → 401 Unauthorized
    │   ├── InvalidCredentials    → 401 (unknown team id or wrong passkey)
    │   ├── InvalidSession        → 401 (malformed, forged or expired token)
    │   └── AccountLocked         → 403 (credentials valid, account inactive)
    ├── AuthorizationDenial       → 403 Forbidden (valid session, out of scope)
    ├── NotFoundError             → 404 Not Found
    ├── ConflictError             → 409 Conflict (unique field already taken)
    ├── DatabaseError             → 500 Internal Server Error
    └── RateLimitExceededError    → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class CommunityError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CommunityError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems are already answered by
    FastAPI with 422; this covers rules a schema cannot express (an empty
    YouTube id, assigning a non core-team user to a vertical, ...).
    """

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


class AuthenticationFailure(CommunityError):
    """
    Raised when the caller cannot be identified.

    HTTP: 401 Unauthorized
    The message never says which factor failed (team id vs passkey).
    """

    error_code = "authentication_failed"
    status_code = 401

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentials(AuthenticationFailure):
    """No user with that team id, or the passkey does not verify."""


class InvalidSession(AuthenticationFailure):
    """Session token missing, malformed, unsigned, tampered with, or expired."""

    def __init__(
        self,
        message: str = "Invalid or expired session",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AccountLocked(AuthenticationFailure):
    """
    Credentials verified but the account is deactivated.

    HTTP: 403 Forbidden. Only reported after the passkey verified, so it
    reveals nothing to someone guessing credentials.
    """

    error_code = "account_locked"
    status_code = 403

    def __init__(
        self,
        message: str = "Your account has been locked. Please contact a Super Admin.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationDenial(CommunityError):
    """
    Raised when an authenticated actor asks for something outside its scope.

    HTTP: 403 Forbidden
    The message is fixed. It never describes what would have been allowed.
    """

    MESSAGE = "Insufficient permissions"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=self.MESSAGE, context=context)


class NotFoundError(CommunityError):
    """
    Raised when a referenced entity does not exist.

    HTTP: 404 Not Found
    SQLAlchemy returns None for missing rows; services convert that into
    this exception so routes stay free of status-code logic.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(CommunityError):
    """
    Raised when a unique field (team id, email, college name) is already taken.

    HTTP: 409 Conflict
    """

    def __init__(
        self,
        message: str = "A record with the same unique value already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DatabaseError(CommunityError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error
    The message returned to the client is always generic. Driver details
    (SQL, constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(CommunityError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests (with a Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
