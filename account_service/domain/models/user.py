"""User domain model for account authentication and management."""

from datetime import datetime
from enum import Enum
from typing import Optional


class Subscription(str, Enum):
    """Subscription tiers available to an account."""

    STARTER = "starter"
    PRO = "pro"
    BUSINESS = "business"


class User:
    """
    User entity, the only record the service stores.

    Attributes:
        id: Unique identifier
        email: User email address (unique, case-sensitive as stored)
        password_hash: Hashed password
        subscription: Subscription tier
        avatar_url: Public avatar location (gravatar until an upload replaces it)
        token: Current session token, cleared on logout
        verify: Whether email has been verified
        verification_token: Token for email verification, cleared once verified
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: int,
        email: str,
        password_hash: str,
        subscription: Subscription = Subscription.STARTER,
        avatar_url: Optional[str] = None,
        token: Optional[str] = None,
        verify: bool = False,
        verification_token: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.email = email
        self.password_hash = password_hash
        self.subscription = Subscription(subscription)
        self.avatar_url = avatar_url
        self.token = token
        self.verify = verify
        self.verification_token = verification_token
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    def mark_verified(self) -> None:
        self.verify = True
        self.verification_token = None

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} subscription={self.subscription.value} verified={self.verify}>"
