"""
Tests for the account operations independent of the HTTP layer.
"""
import asyncio
import hashlib
import io

import pytest

from account_service.domain.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from account_service.domain.models import User
from account_service.infrastructure.repositories.user_repository import SQLiteUserRepository
from account_service.services.avatar_service import AvatarService, gravatar_url
from account_service.services.password_hasher import PasswordHasher
from account_service.services.token_service import TokenService
from account_service.services.user_service import UserService

from conftest import RecordingEmailService


@pytest.fixture
def service(tmp_path):
    return UserService(
        user_repository=SQLiteUserRepository(tmp_path / "accounts.db"),
        password_hasher=PasswordHasher(rounds=4),
        token_service=TokenService(secret="unit-secret"),
        avatar_service=AvatarService(tmp_path / "public" / "avatars", tmp_path / "tmp"),
        email_service=RecordingEmailService(),
    )


def test_gravatar_url_normalises_email():
    digest = hashlib.md5(b"someone@example.com").hexdigest()

    assert gravatar_url("  Someone@Example.com ") == gravatar_url("someone@example.com")
    assert gravatar_url("someone@example.com").startswith(f"https://www.gravatar.com/avatar/{digest}?")


def test_signup_rejects_duplicate(service):
    asyncio.run(service.signup("a@x.com", "secret"))

    with pytest.raises(ConflictError) as excinfo:
        asyncio.run(service.signup("a@x.com", "other"))

    assert excinfo.value.status_code == 409


def test_signup_requires_credentials(service):
    with pytest.raises(ValidationError):
        asyncio.run(service.signup("a@x.com", None))


def test_login_checks_password(service):
    asyncio.run(service.signup("a@x.com", "secret"))

    with pytest.raises(AuthError) as excinfo:
        asyncio.run(service.login("a@x.com", "wrong"))

    assert excinfo.value.message == "Email or password is wrong"


def test_session_token_round_trip(service):
    asyncio.run(service.signup("a@x.com", "secret"))
    token, user = asyncio.run(service.login("a@x.com", "secret"))

    assert service.authenticate_token(token).id == user.id

    service.logout(user)
    with pytest.raises(AuthError):
        service.authenticate_token(token)


def test_expired_token_is_rejected(service):
    asyncio.run(service.signup("a@x.com", "secret"))
    token, user = asyncio.run(service.login("a@x.com", "secret"))
    expired = TokenService(secret="unit-secret", expiration_minutes=-5).create_token(user.id)
    service.user_repository.update_token(user.id, expired)

    with pytest.raises(AuthError):
        service.authenticate_token(expired)


def test_token_signed_with_other_secret_is_rejected(service):
    asyncio.run(service.signup("a@x.com", "secret"))
    _, user = asyncio.run(service.login("a@x.com", "secret"))
    forged = TokenService(secret="other-secret").create_token(user.id)

    with pytest.raises(AuthError):
        service.authenticate_token(forged)


def test_update_avatar_without_file(service):
    user = asyncio.run(service.signup("a@x.com", "secret"))

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.update_avatar(user, None, None))

    assert excinfo.value.message == "No file uploaded"


def test_update_avatar_keeps_original_extension(service, tmp_path):
    from PIL import Image

    user = asyncio.run(service.signup("a@x.com", "secret"))
    buffer = io.BytesIO()
    Image.new("RGB", (500, 100)).save(buffer, format="GIF")
    buffer.seek(0)

    avatar_url = asyncio.run(service.update_avatar(user, "portrait.gif", buffer))

    assert avatar_url == f"/avatars/{user.id}.gif"
    with Image.open(tmp_path / "public" / "avatars" / f"{user.id}.gif") as image:
        assert image.size == (250, 250)
    assert service.user_repository.get_by_id(user.id).avatar_url == avatar_url


def test_verification_lifecycle(service):
    user = asyncio.run(service.signup("a@x.com", "secret"))
    token = user.verification_token

    verified = service.verify_email(token)

    assert verified.verify is True
    assert verified.verification_token is None
    with pytest.raises(NotFoundError):
        service.verify_email(token)


def test_resend_for_verified_user_is_a_400_conflict(service):
    user = asyncio.run(service.signup("a@x.com", "secret"))
    service.verify_email(user.verification_token)

    with pytest.raises(ConflictError) as excinfo:
        asyncio.run(service.resend_verification("a@x.com"))

    assert excinfo.value.status_code == 400
    assert service.email_service.sent == []


def test_resend_does_not_rewrite_existing_token(service):
    user = asyncio.run(service.signup("a@x.com", "secret"))

    asyncio.run(service.resend_verification("a@x.com"))

    stored = service.user_repository.get_by_email("a@x.com")
    assert stored.verification_token == user.verification_token
    assert stored.updated_at == user.updated_at


def test_send_verification_quietly_logs_failures(service, caplog):
    service.email_service.fail = True

    asyncio.run(service.send_verification_quietly("a@x.com", "token"))

    assert "could not be sent" in caplog.text


def test_concurrent_signups_for_one_email(service):
    async def race():
        return await asyncio.gather(
            service.signup("a@x.com", "secret"),
            service.signup("a@x.com", "other"),
            return_exceptions=True,
        )

    results = asyncio.run(race())

    assert sum(isinstance(result, User) for result in results) == 1
    conflicts = [result for result in results if isinstance(result, ConflictError)]
    assert len(conflicts) == 1
    assert conflicts[0].status_code == 409
    assert conflicts[0].message == "Email in use"


def test_login_does_not_undo_verification_during_password_check(service):
    user = asyncio.run(service.signup("a@x.com", "secret"))
    check_password = service.password_hasher.verify

    async def verify_email_meanwhile(password, password_hash):
        service.verify_email(user.verification_token)
        return await check_password(password, password_hash)

    service.password_hasher.verify = verify_email_meanwhile
    token, _ = asyncio.run(service.login("a@x.com", "secret"))

    stored = service.user_repository.get_by_email("a@x.com")
    assert stored.verify is True
    assert stored.verification_token is None
    assert stored.token == token


def test_logout_with_stale_user_keeps_verification(service):
    asyncio.run(service.signup("a@x.com", "secret"))
    _, stale_user = asyncio.run(service.login("a@x.com", "secret"))
    service.verify_email(stale_user.verification_token)

    service.logout(stale_user)

    stored = service.user_repository.get_by_email("a@x.com")
    assert stored.verify is True
    assert stored.verification_token is None
    assert stored.token is None


def test_new_avatar_replaces_previous_extension(service, tmp_path):
    from PIL import Image

    user = asyncio.run(service.signup("a@x.com", "secret"))
    avatars_dir = tmp_path / "public" / "avatars"
    for filename, image_format in (("first.gif", "GIF"), ("second.png", "PNG")):
        buffer = io.BytesIO()
        Image.new("RGB", (60, 60)).save(buffer, format=image_format)
        buffer.seek(0)
        asyncio.run(service.update_avatar(user, filename, buffer))

    assert sorted(path.name for path in avatars_dir.iterdir()) == [f"{user.id}.png"]
    assert list((tmp_path / "tmp").iterdir()) == []


def test_failed_avatar_leaves_no_temporary_file(service, tmp_path):
    user = asyncio.run(service.signup("a@x.com", "secret"))

    from PIL import UnidentifiedImageError

    with pytest.raises(UnidentifiedImageError):
        asyncio.run(service.update_avatar(user, "me.png", io.BytesIO(b"not an image")))

    assert list((tmp_path / "tmp").iterdir()) == []
    assert service.user_repository.get_by_id(user.id).avatar_url == user.avatar_url
