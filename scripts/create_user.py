import asyncio
import getpass
import sys

from dotenv import load_dotenv

from account_service.core.config import Settings
from account_service.infrastructure.repositories.user_repository import SQLiteUserRepository
from account_service.services.avatar_service import gravatar_url
from account_service.services.password_hasher import PasswordHasher


async def main() -> None:
    load_dotenv()
    settings = Settings()
    repository = SQLiteUserRepository(settings.database_path)

    email = input("Email: ").strip()
    if not email:
        raise RuntimeError("Email is required.")
    if repository.get_by_email(email):
        print("Email in use:", email)
        sys.exit(1)

    password = getpass.getpass("Password: ")
    if not password:
        raise RuntimeError("Password is required.")

    password_hash = await PasswordHasher(rounds=settings.bcrypt_rounds).hash(password)
    user = repository.create(
        email=email,
        password_hash=password_hash,
        avatar_url=gravatar_url(email),
        verify=True,
    )
    print("Created verified user", user.id, "in", settings.database_path)


if __name__ == "__main__":
    asyncio.run(main())
