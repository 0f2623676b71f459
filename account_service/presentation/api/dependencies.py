from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...core.dependencies import get_user_service
from ...domain.errors import AuthError
from ...domain.models import User
from ...services.user_service import NOT_AUTHORIZED, UserService

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Attach the user owning the bearer session token, or reject with 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError(NOT_AUTHORIZED)
    return user_service.authenticate_token(credentials.credentials)
