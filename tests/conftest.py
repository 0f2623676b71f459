from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from account_service.core.app_factory import create_application
from account_service.core.config import Settings
from account_service.domain.errors import EmailDeliveryError


class RecordingEmailService:
    """Stands in for the SMTP email service and records every dispatch."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[Tuple[str, str]] = []

    async def send_verification_email(self, to_email: str, verification_token: str) -> None:
        if self.fail:
            raise EmailDeliveryError(f"Failed to send email to {to_email}: connection refused")
        self.sent.append((to_email, verification_token))


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "accounts.db"))
    monkeypatch.setenv("PUBLIC_DIR", str(tmp_path / "public"))
    monkeypatch.setenv("TMP_DIR", str(tmp_path / "tmp"))
    for key in ("SMTP_HOST", "SMTP_USERNAME", "SMTP_PASSWORD", "SMTP_FROM_EMAIL", "JWT_EXPIRATION_MINUTES"):
        monkeypatch.delenv(key, raising=False)
    return Settings()


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


def _client(settings: Settings, email_service: RecordingEmailService, raise_server_exceptions: bool):
    app = create_application(settings)
    with TestClient(app, raise_server_exceptions=raise_server_exceptions) as client:
        client.app.state.container.user_service.email_service = email_service
        yield client


@pytest.fixture
def client(settings, email_service):
    yield from _client(settings, email_service, raise_server_exceptions=True)


@pytest.fixture
def lenient_client(settings, email_service):
    """Client that returns 500 responses instead of re-raising server errors."""
    yield from _client(settings, email_service, raise_server_exceptions=False)


@pytest.fixture
def container(client):
    return client.app.state.container


def signup(client: TestClient, email: str = "a@x.com", password: str = "secret"):
    return client.post("/users/signup", json={"email": email, "password": password})


def login(client: TestClient, email: str = "a@x.com", password: str = "secret") -> Optional[str]:
    response = client.post("/users/login", json={"email": email, "password": password})
    return response.json().get("token")
