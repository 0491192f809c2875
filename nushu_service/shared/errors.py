"""Service error types.

Every error a handler raises is an HTTPException subclass so FastAPI routes
them through the exception handlers registered in app.py, which render
them as ``{"success": false, "message": ...}``.
"""

from typing import Optional, List, Dict
from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class for errors returned to API callers."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.http_status,
            detail=message or self.default_message,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail

    def extra_body(self) -> dict:
        """Additional fields merged into the JSON error body."""
        return {}


class ValidationError(ServiceError):
    """Missing or malformed input."""
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.errors = errors

    def extra_body(self) -> dict:
        return {"errors": self.errors} if self.errors else {}


class Unauthorized(ServiceError):
    """Missing, malformed or invalid bearer token, or bad credentials."""
    http_status = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class NotFound(ServiceError):
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class RateLimitExceeded(ServiceError):
    """Caller exhausted its attempts for the current window."""
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        headers = {"Retry-After": str(retry_after)} if retry_after > 0 else None
        super().__init__(message, headers=headers)
        self.retry_after = retry_after

    def extra_body(self) -> dict:
        return {"retry_after": self.retry_after} if self.retry_after > 0 else {}


class InternalError(ServiceError):
    """Persistence or unexpected failure.

    ``error`` keeps the underlying error text; it is only shown to callers
    when the service runs in development mode.
    """
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        super().__init__(message)
        self.error = error
