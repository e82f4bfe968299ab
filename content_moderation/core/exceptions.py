"""
Custom exceptions for the content moderation engine.

This module defines specific exception types for different error scenarios,
enabling better error handling and more informative error responses.
"""

from typing import Optional, Dict, Any
from fastapi import HTTPException


class ContentModerationException(Exception):
    """Base exception for all content moderation related errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONTENT_MODERATION_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ClassifierServiceException(ContentModerationException):
    """Raised inside the classifier adapter when the remote service misbehaves."""

    def __init__(
        self,
        message: str,
        kind: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="CLASSIFIER_SERVICE_ERROR",
            details={**(details or {}), "kind": kind}
        )


class DatabaseException(ContentModerationException):
    """Exception raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            details={**(details or {}), "operation": operation}
        )


class ValidationException(ContentModerationException):
    """Exception raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={**(details or {}), "field": field}
        )


class AuthorizationException(ContentModerationException):
    """Exception raised when a reviewer-only action has no authenticated reviewer."""

    def __init__(
        self,
        message: str = "Reviewer not authenticated",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="AUTHORIZATION_ERROR",
            details=details
        )


class ContentNotFoundException(ContentModerationException):
    """Exception raised when a media file or moderation record does not exist."""

    def __init__(
        self,
        message: str,
        resource: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="CONTENT_NOT_FOUND",
            details={**(details or {}), "resource": resource}
        )


class RateLimitException(ContentModerationException):
    """Exception raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: int = 60,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="RATE_LIMIT_EXCEEDED",
            details={**(details or {}), "retry_after": retry_after}
        )


def create_http_exception(
    exception: ContentModerationException,
    status_code: Optional[int] = None
) -> HTTPException:
    """
    Convert custom exception to FastAPI HTTPException.

    Args:
        exception: Custom exception instance
        status_code: HTTP status code to return, looked up from the
            exception type when omitted

    Returns:
        HTTPException instance
    """
    if status_code is None:
        status_code = EXCEPTION_STATUS_MAPPING.get(type(exception), 500)
    return HTTPException(
        status_code=status_code,
        detail={
            "error_code": exception.error_code,
            "message": exception.message,
            "details": exception.details
        }
    )


# Exception to HTTP status code mapping
EXCEPTION_STATUS_MAPPING = {
    ClassifierServiceException: 503,  # Service Unavailable
    DatabaseException: 500,  # Internal Server Error
    ValidationException: 400,  # Bad Request
    AuthorizationException: 401,  # Unauthorized
    ContentNotFoundException: 404,  # Not Found
    RateLimitException: 429,  # Too Many Requests
}
