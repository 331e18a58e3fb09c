"""
Custom exceptions for ChatPad API.
Provides consistent error handling across the application.
"""
from fastapi import status


class ChatPadException(Exception):
    """Base exception for ChatPad"""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(ChatPadException):
    """Resource not found"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class AlreadyExistsError(ChatPadException):
    """Resource already exists"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class UnauthorizedError(ChatPadException):
    """Authentication failed"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ForbiddenError(ChatPadException):
    """Access denied"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class NoAccountContextError(ChatPadException):
    """Principal does not resolve to any account (owner or team member)."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "No account context for this user"):
        super().__init__(message)


class ValidationError(ChatPadException):
    """Validation failed"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Validation failed", field: str = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class RateLimitError(ChatPadException):
    """Too many requests"""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message)


class TokenExpiredError(ChatPadException):
    """Token has expired"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, token_type: str = "Token"):
        super().__init__(f"{token_type} has expired")


class TokenInvalidError(ChatPadException):
    """Token is invalid"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, token_type: str = "Token"):
        super().__init__(f"{token_type} is invalid")
