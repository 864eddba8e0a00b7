"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Input Errors
class BadRequestError(BaseAPIException):
    """Missing or invalid input"""
    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class ValidationError(BaseAPIException):
    """Validation error"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    def __init__(self, message: str = "Unauthorized request"):
        super().__init__(message, status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Password does not match the stored hash"""
    def __init__(self):
        super().__init__("Invalid user credentials")


class RefreshTokenReuseError(AuthenticationError):
    """Refresh token was already rotated away, revoked or superseded"""
    def __init__(self):
        super().__init__("Refresh token is expired or used")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str, message: Optional[str] = None):
        super().__init__(message or f"{resource} not found", status_code=404)


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""
    def __init__(self, resource: str, message: Optional[str] = None):
        super().__init__(message or f"{resource} already exists", status_code=409)


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429)


# System Errors
class InternalServerError(BaseAPIException):
    """Store or signing failure unrelated to caller input"""
    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message, status_code=500)


class TokenGenerationError(InternalServerError):
    """Token pair could not be minted or persisted"""
    def __init__(self):
        super().__init__("Something went wrong while generating access and refresh token")
