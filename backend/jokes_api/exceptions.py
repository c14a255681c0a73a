"""
Jokes API Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, one per client-facing error category.
Why:   Each category has a stable machine-readable code and HTTP status, so the
       global handler in main.py can render every failure the same way.
How:   Each exception carries a human-readable message and an optional context
       dict. Context is returned as `details` for client errors and only logged
       for server errors.
Who:   Raised by the validation layer, the authorization guard, the services and
       the error translator; caught by the handler registered in main.py.

Exception Hierarchy:
    JokesApiError (base)
    ├── ValidationError             → 400 validation_error
    ├── InvalidReferenceError       → 400 reference_error
    ├── UnauthenticatedError        → 401 unauthenticated
    ├── InvalidCredentialError      → 401 invalid_credential
    ├── AuthenticationFailedError   → 401 authentication_failed
    ├── ForbiddenError              → 403 forbidden
    ├── NotFoundError               → 404 not_found
    ├── DuplicateResourceError      → 409 duplicate_resource
    │   ├── DuplicateUsernameError  → 409 duplicate_username
    │   └── DuplicateEmailError     → 409 duplicate_email
    ├── RateLimitExceededError      → 429 rate_limit_exceeded
    └── BackendUnavailableError     → 500 backend_unavailable
"""

from typing import Any, Dict, Optional


class JokesApiError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` for 4xx, logged only for 5xx
    """

    error_code = "internal_server_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500

    def to_response_body(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """The JSON error body; `details` only for client errors."""
        body: Dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.is_client_error and self.context:
            body["details"] = self.context
        body["request_id"] = request_id or None
        return body


class ValidationError(JokesApiError):
    """
    Raised when client input fails a validation predicate.

    When:    Missing/empty fields, length bounds, malformed ids, bad email shape.
             Always raised before any store access.
    """

    error_code = "validation_error"
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


class InvalidReferenceError(JokesApiError):
    """A foreign-key violation: the row points at something that does not exist."""

    error_code = "reference_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Related record not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthenticatedError(JokesApiError):
    """No bearer credential was presented on a route that requires one."""

    error_code = "unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Access denied. No token provided."):
        super().__init__(message=message)


class InvalidCredentialError(JokesApiError):
    """The bearer token failed signature or expiration checks."""

    error_code = "invalid_credential"
    status_code = 401

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message)


class AuthenticationFailedError(JokesApiError):
    """
    Login failed.

    The message is identical whether the username is unknown or the password
    is wrong, so the response never reveals which accounts exist.
    """

    error_code = "authentication_failed"
    status_code = 401

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message=message)


class ForbiddenError(JokesApiError):
    """Authenticated, but not allowed to act on this particular resource."""

    error_code = "forbidden"
    status_code = 403

    def __init__(
        self,
        message: str = "You are not allowed to modify this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(JokesApiError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None (or zero rows) for missing records; services convert
    that into NotFoundError so the route layer stays free of status-code logic.
    """

    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateResourceError(JokesApiError):
    """A uniqueness violation (e.g. the same favorite added twice)."""

    error_code = "duplicate_resource"
    status_code = 409

    def __init__(
        self,
        message: str = "This resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateUsernameError(DuplicateResourceError):
    error_code = "duplicate_username"

    def __init__(self, message: str = "Username already exists. Please choose a different username"):
        super().__init__(message=message, context={"field": "username"})


class DuplicateEmailError(DuplicateResourceError):
    error_code = "duplicate_email"

    def __init__(self, message: str = "Email already exists. This email is already registered"):
        super().__init__(message=message, context={"field": "email"})


class RateLimitExceededError(JokesApiError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header with the seconds until the window frees up.
    """

    error_code = "rate_limit_exceeded"
    status_code = 429

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


class BackendUnavailableError(JokesApiError):
    """
    Raised when the store fails for any reason other than a recognised constraint.

    Security Note:
        The message returned to the client is always generic. The context
        (exception type, raw driver message) is logged server-side only.
    """

    error_code = "backend_unavailable"
    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
