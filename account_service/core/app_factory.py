from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..infrastructure.repositories.user_repository import SQLiteUserRepository
from ..presentation.api.error_handlers import register_exception_handlers
from ..presentation.api.routers import users as users_router
from ..services.avatar_service import AvatarService
from ..services.email_service import EmailService
from ..services.password_hasher import PasswordHasher
from ..services.token_service import TokenService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Account Service", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(users_router.router)

    settings.avatars_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/avatars", StaticFiles(directory=settings.avatars_dir), name="avatars")

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True}

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    user_repository = SQLiteUserRepository(settings.database_path)
    password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    token_service = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiration_minutes=settings.jwt_expiration_minutes,
    )
    avatar_service = AvatarService(settings.avatars_dir, settings.tmp_dir)
    email_service = EmailService(
        base_url=settings.app_base_url,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
    )
    user_service = UserService(
        user_repository=user_repository,
        password_hasher=password_hasher,
        token_service=token_service,
        avatar_service=avatar_service,
        email_service=email_service,
    )

    return ApplicationContainer(
        user_repository=user_repository,
        user_service=user_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        app.state.container = build_container(settings)  # type: ignore[attr-defined]
        logger.info("Account service started with database %s", settings.database_path)
        try:
            yield
        finally:
            logger.info("Account service stopped")

    return lifespan
