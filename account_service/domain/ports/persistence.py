from __future__ import annotations

from typing import Optional, Protocol

from ..models import Subscription, User


class UserRepository(Protocol):
    """Abstract storage for user accounts."""

    def create(
        self,
        email: str,
        password_hash: str,
        subscription: Subscription,
        avatar_url: Optional[str],
        verification_token: Optional[str],
    ) -> User:
        ...

    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def get_by_verification_token(self, token: str) -> Optional[User]:
        ...

    def update_token(self, user_id: int, token: Optional[str]) -> None:
        ...

    def update_avatar(self, user_id: int, avatar_url: str) -> None:
        ...

    def verify_email(self, user_id: int) -> None:
        ...

    def update_verification_token(self, user_id: int, token: str) -> None:
        ...
