from dataclasses import dataclass

from ..domain.ports.persistence import UserRepository
from ..services.user_service import UserService


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    user_repository: UserRepository
    user_service: UserService
