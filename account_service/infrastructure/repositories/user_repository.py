"""Repository for User persistence."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from account_service.domain.errors import ConflictError
from account_service.domain.models.user import Subscription, User


class SQLiteUserRepository:
    """Repository for managing User entities in SQLite."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_table()

    def _initialize_table(self) -> None:
        """Create users table if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    subscription TEXT NOT NULL DEFAULT 'starter'
                        CHECK (subscription IN ('starter', 'pro', 'business')),
                    avatar_url TEXT,
                    token TEXT,
                    verify INTEGER NOT NULL DEFAULT 0,
                    verification_token TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_users_verification_token ON users(verification_token)"
            )
            conn.commit()

    def create(
        self,
        email: str,
        password_hash: str,
        subscription: Subscription = Subscription.STARTER,
        avatar_url: Optional[str] = None,
        verification_token: Optional[str] = None,
        verify: bool = False,
    ) -> User:
        """Create a new user."""
        now = datetime.utcnow().isoformat()

        with sqlite3.connect(self.db_path) as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (
                        email, password_hash, subscription, avatar_url, token,
                        verify, verification_token, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, NULL, ?, ?, ?, ?)
                    """,
                    (
                        email,
                        password_hash,
                        Subscription(subscription).value,
                        avatar_url,
                        int(verify),
                        verification_token,
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                # email UNIQUE constraint; another signup won the race
                raise ConflictError("Email in use") from exc
            conn.commit()
            user_id = cursor.lastrowid

        return User(
            id=user_id,
            email=email,
            password_hash=password_hash,
            subscription=subscription,
            avatar_url=avatar_url,
            verify=verify,
            verification_token=verification_token,
            created_at=datetime.fromisoformat(now),
            updated_at=datetime.fromisoformat(now),
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email,))

    def get_by_verification_token(self, token: str) -> Optional[User]:
        """Get user by verification token."""
        return self._fetch_one(
            "SELECT * FROM users WHERE verification_token = ?", (token,)
        )

    def update_token(self, user_id: int, token: Optional[str]) -> None:
        """Set or clear user's session token."""
        self._update(user_id, "token = ?", (token,))

    def update_avatar(self, user_id: int, avatar_url: str) -> None:
        """Update user's avatar URL."""
        self._update(user_id, "avatar_url = ?", (avatar_url,))

    def verify_email(self, user_id: int) -> None:
        """Mark user's email as verified."""
        self._update(user_id, "verify = 1, verification_token = NULL", ())

    def update_verification_token(self, user_id: int, token: str) -> None:
        """Update user's verification token. Verified users keep none."""
        self._update(
            user_id, "verification_token = ?", (token,), condition="verify = 0"
        )

    def _update(
        self,
        user_id: int,
        assignments: str,
        params: tuple,
        condition: Optional[str] = None,
    ) -> None:
        now = datetime.utcnow().isoformat()
        where = "id = ?" if condition is None else f"id = ? AND {condition}"
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                f"UPDATE users SET {assignments}, updated_at = ? WHERE {where}",
                (*params, now, user_id),
            )
            conn.commit()

    def _fetch_one(self, query: str, params: tuple) -> Optional[User]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(query, params).fetchone()

        if not row:
            return None

        return self._row_to_user(row)

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert database row to User entity."""
        return User(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            subscription=Subscription(row["subscription"]),
            avatar_url=row["avatar_url"],
            token=row["token"],
            verify=bool(row["verify"]),
            verification_token=row["verification_token"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
