"""Error taxonomy shared by the account operations and the HTTP layer."""

from typing import Optional


class AccountError(Exception):
    """Base class for errors rendered as ``{"message": ...}`` responses."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AccountError):
    """Malformed or missing input."""

    status_code = 400


class AuthError(AccountError):
    """Bad credentials or missing session. Never says which part was wrong."""

    status_code = 401


class ConflictError(AccountError):
    """Duplicate resource or an invalid state transition."""

    status_code = 409


class NotFoundError(AccountError):
    status_code = 404


class EmailDeliveryError(Exception):
    """Raised when the mail transport rejects or cannot deliver a message."""
