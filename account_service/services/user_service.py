"""Service for user authentication and management."""

import logging
import uuid
from typing import BinaryIO, Optional

from email_validator import EmailNotValidError, validate_email

from account_service.domain.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from account_service.domain.models.user import Subscription, User
from account_service.domain.ports.persistence import UserRepository
from account_service.services.avatar_service import AvatarService, gravatar_url
from account_service.services.email_service import EmailService
from account_service.services.password_hasher import PasswordHasher
from account_service.services.token_service import TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Email or password is wrong"
NOT_AUTHORIZED = "Not authorized"


class UserService:
    """Account operations: registration, sessions, avatars and email verification."""

    def __init__(
        self,
        user_repository: UserRepository,
        password_hasher: PasswordHasher,
        token_service: TokenService,
        avatar_service: AvatarService,
        email_service: EmailService,
    ):
        self.user_repository = user_repository
        self.password_hasher = password_hasher
        self.token_service = token_service
        self.avatar_service = avatar_service
        self.email_service = email_service

    async def signup(self, email: Optional[str], password: Optional[str]) -> User:
        """
        Register a new user.

        The verification email is not sent here; callers dispatch it with
        :meth:`send_verification_quietly` once the response is on its way.

        Raises:
            ValidationError: If email or password is missing
            ConflictError: If email already exists
        """
        if not email or not password:
            raise ValidationError("Validation error")

        if self.user_repository.get_by_email(email):
            raise ConflictError("Email in use")

        verification_token = str(uuid.uuid4())
        password_hash = await self.password_hasher.hash(password)

        user = self.user_repository.create(
            email=email,
            password_hash=password_hash,
            subscription=Subscription.STARTER,
            avatar_url=gravatar_url(email),
            verification_token=verification_token,
        )
        logger.info("Registered user %s", user.id)
        return user

    async def send_verification_quietly(self, email: str, verification_token: str) -> None:
        """Fire-and-forget dispatch: delivery failures are logged, never raised."""
        try:
            await self.email_service.send_verification_email(email, verification_token)
        except Exception:
            logger.exception("Verification email to %s could not be sent", email)

    async def login(self, email: Optional[str], password: Optional[str]) -> tuple[str, User]:
        """
        Authenticate a user and open a session.

        Returns:
            Tuple of (token, User)

        Raises:
            ValidationError: If email or password is missing
            AuthError: If the email is unknown or the password does not match
        """
        if not email or not password:
            raise ValidationError("Validation error")

        user = self.user_repository.get_by_email(email)
        if not user:
            raise AuthError(INVALID_CREDENTIALS)

        if not await self.password_hasher.verify(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)

        user.token = self.token_service.create_token(user.id)
        self.user_repository.update_token(user.id, user.token)
        logger.info("User %s logged in", user.id)
        return user.token, user

    def logout(self, user: User) -> None:
        user.token = None
        self.user_repository.update_token(user.id, None)

    def authenticate_token(self, token: str) -> User:
        """
        Resolve the user owning an active session token.

        Raises:
            AuthError: If the token is invalid, expired or no longer the user's session
        """
        payload = self.token_service.verify_token(token)
        if not payload or "user_id" not in payload:
            raise AuthError(NOT_AUTHORIZED)

        user = self.user_repository.get_by_id(payload["user_id"])
        if not user or user.token != token:
            raise AuthError(NOT_AUTHORIZED)

        return user

    async def update_avatar(
        self,
        user: User,
        filename: Optional[str],
        source: Optional[BinaryIO],
    ) -> str:
        """
        Replace the user's avatar with a resized copy of the uploaded image.

        Raises:
            ValidationError: If no file was uploaded
        """
        if source is None:
            raise ValidationError("No file uploaded")

        user.avatar_url = await self.avatar_service.store(user.id, filename or "", source)
        self.user_repository.update_avatar(user.id, user.avatar_url)
        return user.avatar_url

    def verify_email(self, verification_token: str) -> User:
        """
        Mark the owner of a verification token as verified.

        Raises:
            NotFoundError: If no user holds the token
        """
        user = self.user_repository.get_by_verification_token(verification_token)
        if not user:
            raise NotFoundError("Verification user Not Found")

        user.mark_verified()
        self.user_repository.verify_email(user.id)
        logger.info("User %s verified", user.id)
        return user

    async def resend_verification(self, email: Optional[str]) -> None:
        """
        Send the verification email again, reusing the pending token.

        Delivery failures propagate to the caller.

        Raises:
            ValidationError: If email is missing or malformed
            NotFoundError: If user not found
            ConflictError: If the user is already verified
        """
        if not email or not _is_valid_email(email):
            raise ValidationError("Missing required field email")

        user = self.user_repository.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")

        if user.verify:
            raise ConflictError("Verification has already been passed", status_code=400)

        verification_token = user.verification_token or str(uuid.uuid4())

        await self.email_service.send_verification_email(email, verification_token)

        if not user.verification_token:
            user.verification_token = verification_token
            self.user_repository.update_verification_token(user.id, verification_token)


def _is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
