"""Domain models for the account service."""

from .user import Subscription, User

__all__ = [
    "Subscription",
    "User",
]
