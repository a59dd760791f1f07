"""
Bearer token issuing and validation.

Tokens are HS256 JWTs signed with the shared ``jwt_secret`` setting.

Classes:
    TokenClient: Issues and validates tokens

Token Structure:
    {
        "sub": str,   # user id
        "iat": int,   # issued at
        "exp": int    # expiry timestamp
    }
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import jwt

from marketplace.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass
class TokenPayload:
    """Validated token payload."""
    user_id: str
    exp: int  # Expiry timestamp


class TokenClient:
    """Client for issuing and validating bearer tokens."""

    def __init__(self, jwt_secret: str, expire_days: int = 30):
        """Initialize client.

        Args:
            jwt_secret: Shared secret for signing (HS256)
            expire_days: Token lifetime in days
        """
        self.jwt_secret = jwt_secret
        self.expire_days = expire_days

    def _require_secret(self) -> None:
        if not self.jwt_secret:
            logger.error("jwt_secret is not configured")
            raise ConfigurationError("Authentication service not configured")

    def issue_token(self, user_id: str) -> str:
        """Issue a signed token for a user.

        Args:
            user_id: Subject of the token

        Returns:
            Encoded JWT string

        Raises:
            ConfigurationError: If no signing secret is configured
        """
        self._require_secret()
        now = int(time.time())
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self.expire_days * 24 * 3600,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=ALGORITHM)

    def validate_token(self, token: str) -> Optional[TokenPayload]:
        """Validate a token locally.

        Args:
            token: JWT token string

        Returns:
            TokenPayload if valid, None if invalid or expired

        Raises:
            ConfigurationError: If no signing secret is configured
        """
        self._require_secret()
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[ALGORITHM],
                options={
                    "verify_signature": True,
                    "require": ["sub", "exp"],
                },
            )
            return TokenPayload(user_id=payload["sub"], exp=payload["exp"])

        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None
