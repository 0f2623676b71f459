"""API router for user accounts, sessions, avatars and email verification."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Response, UploadFile, status

from ....core.dependencies import get_user_service
from ....domain.models import User
from ....services.user_service import UserService
from ..dependencies import get_current_user
from ..schemas.user_schemas import (
    AvatarUpdateResponse,
    MessageResponse,
    UserCredentialsRequest,
    UserLoginResponse,
    UserResendVerificationRequest,
    UserResponse,
    UserSignupResponse,
    UserSignupView,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=UserSignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: UserCredentialsRequest,
    background_tasks: BackgroundTasks,
    user_service: UserService = Depends(get_user_service),
) -> UserSignupResponse:
    """Register a new user and send the verification email in the background."""
    user = await user_service.signup(payload.email, payload.password)

    background_tasks.add_task(
        user_service.send_verification_quietly, user.email, user.verification_token
    )

    return UserSignupResponse(
        user=UserSignupView(
            email=user.email,
            subscription=user.subscription,
            avatar_url=user.avatar_url,
        )
    )


@router.post("/login", response_model=UserLoginResponse)
async def login(
    payload: UserCredentialsRequest,
    user_service: UserService = Depends(get_user_service),
) -> UserLoginResponse:
    """Login and get a session token."""
    token, user = await user_service.login(payload.email, payload.password)
    return UserLoginResponse(
        token=token,
        user=UserResponse(email=user.email, subscription=user.subscription),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    user_service.logout(user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current", response_model=UserResponse)
async def current_user(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse(email=user.email, subscription=user.subscription)


@router.patch("/avatars", response_model=AvatarUpdateResponse)
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> AvatarUpdateResponse:
    """Replace the current user's avatar with a 250x250 copy of the upload."""
    avatar_url = await user_service.update_avatar(
        user,
        avatar.filename if avatar else None,
        avatar.file if avatar else None,
    )
    return AvatarUpdateResponse(message="Avatar updated successfully", avatar_url=avatar_url)


@router.get("/verify/{verification_token}", response_model=MessageResponse)
async def verify_email(
    verification_token: str,
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    user_service.verify_email(verification_token)
    return MessageResponse(message="Verification successful")


@router.post("/verify", response_model=MessageResponse)
async def resend_verification(
    payload: UserResendVerificationRequest,
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Resend the verification email. Delivery failures surface as 500."""
    await user_service.resend_verification(payload.email)
    return MessageResponse(message="Verification email sent")
