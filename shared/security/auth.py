"""
Shared authentication utilities for the supplier management platform.
Issues and verifies the bearer tokens every terminal sends with its requests.
"""

import jwt
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any
from enum import Enum
import logging
import os

from shared.exceptions import TokenException

logger = logging.getLogger(__name__)


class SecurityConfig:
    """Security configuration constants."""

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    JWT_ISSUER = os.getenv("JWT_ISSUER", "srm-platform")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "srm-platform-api")


class TokenType(Enum):
    """Token types for JWT tokens."""
    ACCESS = "access"
    REFRESH = "refresh"


class JWTManager:
    """JWT token management."""

    def __init__(self, secret_key: str = None, algorithm: str = None):
        self.secret_key = secret_key or SecurityConfig.JWT_SECRET_KEY
        self.algorithm = algorithm or SecurityConfig.JWT_ALGORITHM

    def create_access_token(
        self,
        user_id: str,
        expires_delta: timedelta = None,
        additional_claims: Dict[str, Any] = None
    ) -> str:
        """Create a signed access token for a user id."""

        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=SecurityConfig.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))

        payload = {
            "sub": str(user_id),
            "type": TokenType.ACCESS.value,
            "iat": now,
            "exp": expire,
            "jti": secrets.token_urlsafe(16),
            "iss": SecurityConfig.JWT_ISSUER,
            "aud": SecurityConfig.JWT_AUDIENCE
        }

        if additional_claims:
            payload.update(additional_claims)

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str, expected_type: TokenType = TokenType.ACCESS) -> Dict[str, Any]:
        """Verify and decode a JWT token. Raises TokenException on any failure."""

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=SecurityConfig.JWT_AUDIENCE,
                issuer=SecurityConfig.JWT_ISSUER
            )
        except jwt.ExpiredSignatureError:
            logger.warning(f"Expired token attempted: {token[:20]}...")
            raise TokenException("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token attempted: {token[:20]}... - {str(e)}")
            raise TokenException("Invalid token")

        if expected_type and payload.get("type") != expected_type.value:
            raise TokenException(f"Invalid token type. Expected {expected_type.value}")

        if not payload.get("sub"):
            raise TokenException("Token has no subject")

        return payload


# Global instances
jwt_manager = JWTManager()
