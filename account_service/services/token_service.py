"""Service for signing and checking session tokens."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt


class TokenService:
    """Issues JWT session tokens bound to a user identifier."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiration_minutes: int = 60,
    ):
        if not secret:
            raise RuntimeError("JWT_SECRET is not configured.")
        self.secret = secret
        self.algorithm = algorithm
        self.expiration = timedelta(minutes=expiration_minutes)

    def create_token(self, user_id: int) -> str:
        """
        Create a signed token for a user.

        Args:
            user_id: User ID

        Returns:
            JWT token string
        """
        now = datetime.now(tz=timezone.utc)
        payload = {
            "user_id": user_id,
            "iat": now,
            "exp": now + self.expiration,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[dict]:
        """
        Verify and decode a token.

        Args:
            token: JWT token string

        Returns:
            Decoded payload if valid, None otherwise
        """
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
