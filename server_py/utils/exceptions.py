"""Custom exceptions for the application."""
from typing import Any, Optional
from fastapi import HTTPException, status


class RepoTestGenException(Exception):
    """Base exception for the test generation service."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class FetchError(RepoTestGenException):
    """Transport, auth or non-2xx failure against the repository API."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Any] = None):
        self.status_code = status_code
        super().__init__(message, details)


class ContentTypeError(RepoTestGenException):
    """Path resolved to an entry of the wrong kind."""
    pass


class DirectoryExpectedError(ContentTypeError):
    """A directory listing was requested for a file path."""
    pass


class MalformedResponseError(RepoTestGenException):
    """Model output could not be parsed into the expected shape."""
    pass


class SubmissionError(RepoTestGenException):
    """Change-set creation was empty or rejected."""
    pass


class ConfigurationError(RepoTestGenException):
    """Missing access token or model API key."""
    pass


class ValidationError(RepoTestGenException):
    """Validation error exception."""
    pass


class AIServiceError(RepoTestGenException):
    """Language-model call failed or was rejected."""
    pass


class PlanNotFoundError(RepoTestGenException):
    """No test plan with the requested id in the current run."""
    pass


def unauthorized(detail: str = "Unauthorized") -> HTTPException:
    """Create 401 unauthorized exception."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail
    )


def not_found(resource: str = "Resource") -> HTTPException:
    """Create 404 not found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found"
    )


def bad_request(detail: str) -> HTTPException:
    """Create 400 bad request exception."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail
    )


def bad_gateway(detail: str) -> HTTPException:
    """Create 502 bad gateway exception."""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=detail
    )


def internal_error(detail: str = "Internal server error") -> HTTPException:
    """Create 500 internal server error exception."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail
    )


def to_http_exception(exc: RepoTestGenException) -> HTTPException:
    """Map a domain exception to the HTTP error surfaced to the caller."""
    if isinstance(exc, PlanNotFoundError):
        return not_found("Test plan")
    if isinstance(exc, (ConfigurationError, ValidationError, ContentTypeError)):
        return bad_request(exc.message)
    if isinstance(exc, FetchError) and exc.status_code == status.HTTP_401_UNAUTHORIZED:
        return unauthorized(exc.message)
    if isinstance(exc, (FetchError, MalformedResponseError, SubmissionError, AIServiceError)):
        return bad_gateway(exc.message)
    return internal_error(exc.message)
