"""Pydantic schemas for user API endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from account_service.domain.models.user import Subscription


class UserCredentialsRequest(BaseModel):
    """Request schema for signup and login. Presence is checked by the service."""

    email: Optional[str] = None
    password: Optional[str] = None


class UserResendVerificationRequest(BaseModel):
    """Request schema to resend verification email."""

    email: Optional[str] = None


class UserResponse(BaseModel):
    """Response schema for the public part of a user."""

    email: str
    subscription: Subscription


class UserSignupView(UserResponse):
    model_config = ConfigDict(populate_by_name=True)

    avatar_url: str = Field(alias="avatarURL")


class UserSignupResponse(BaseModel):
    """Response schema for user registration."""

    user: UserSignupView


class UserLoginResponse(BaseModel):
    """Response schema for user login."""

    token: str
    user: UserResponse


class AvatarUpdateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    avatar_url: str = Field(alias="avatarURL")


class MessageResponse(BaseModel):
    message: str
