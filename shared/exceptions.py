"""
Shared exception classes for the supplier management platform.
Every exception carries the HTTP status the API layer reports it with.
"""

from typing import Dict, Any


class PlatformException(Exception):
    """Base exception class for all platform-specific exceptions."""

    status_code = 500

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class AuthException(PlatformException):
    """Exception raised for authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", error_code: str = "AUTH_ERROR", details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class TokenException(AuthException):
    """Exception raised for JWT token-related errors."""

    def __init__(self, message: str = "Invalid token", error_code: str = "TOKEN_ERROR", details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class AuthorizationException(PlatformException):
    """Exception raised when the caller lacks a required role."""

    status_code = 403

    def __init__(self, message: str = "Access denied", error_code: str = "AUTHZ_ERROR", details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class ValidationException(PlatformException):
    """Exception raised for data validation errors and illegal state transitions."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", error_code: str = "VALIDATION_ERROR", details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class NotFoundException(PlatformException):
    """Exception raised when a target record does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND", details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)


class ProvisioningException(PlatformException):
    """
    Raised when permission provisioning fails after an approval committed.

    Never reported to the caller: the approval stands and re-approving
    completes the missing steps.
    """

    def __init__(self, message: str = "Permission provisioning failed", error_code: str = "PROVISIONING_ERROR", details: Dict[str, Any] = None):
        super().__init__(message, error_code, details)
