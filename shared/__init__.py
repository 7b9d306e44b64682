"""
Shared utilities and models for the supplier management platform.
"""

from .exceptions import (
    PlatformException,
    AuthException,
    TokenException,
    AuthorizationException,
    ValidationException,
    NotFoundException,
    ProvisioningException
)

__all__ = [
    "PlatformException",
    "AuthException",
    "TokenException",
    "AuthorizationException",
    "ValidationException",
    "NotFoundException",
    "ProvisioningException"
]
