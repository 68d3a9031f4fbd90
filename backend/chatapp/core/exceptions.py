# backend/chatapp/core/exceptions.py
"""
Domain-specific exceptions for the chat backend.

Services raise these; the API layer converts them into short
`{"message": ...}` responses with the matching status code.
"""

from typing import Any, Dict, Optional

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_response_body(self) -> Dict[str, Any]:
        """Body returned to clients; never carries internal detail."""
        return {"message": self.message}


class ValidationException(DomainException):
    """Raised when a required field is missing or out of range."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidIdentifierException(ValidationException):
    """Raised when an identifier is not a well-formed ULID."""

    def __init__(self, message: str = "Invalid identifier", **kwargs: Any) -> None:
        super().__init__(message, code="INVALID_IDENTIFIER", **kwargs)


class InvalidReplyException(ValidationException):
    """Raised when a reply target belongs to another conversation."""

    def __init__(
        self, message: str = "Reply message must belong to the same conversation", **kwargs: Any
    ) -> None:
        super().__init__(message, code="INVALID_REPLY", **kwargs)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a unique field is already taken."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when credentials do not match."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_response_body(self) -> Dict[str, Any]:
        return {"message": "Internal server error"}


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
