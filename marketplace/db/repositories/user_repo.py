"""User repository for database operations."""

import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from marketplace.db.database import Database
from marketplace.exceptions import ConflictError
from marketplace.models.plugin import utcnow
from marketplace.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user account CRUD operations.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the repository.

        Args:
            db: Database instance.
        """
        self.db = db

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User to create.

        Returns:
            Created user.

        Raises:
            ConflictError: If the username or email is already taken.
        """
        if not user.id:
            user.id = uuid.uuid4().hex

        query = """
        INSERT INTO users (
            id, username, email, password_hash, is_admin, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    query,
                    (
                        user.id,
                        user.username,
                        user.email,
                        user.password_hash,
                        user.is_admin,
                        user.created_at.isoformat(),
                        user.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError("Username or email is already taken") from e

        logger.info(f"Created user: {user.username}")
        return user

    def _row_to_user(self, row) -> User:
        """Convert a database row to a User object.

        Args:
            row: Database row.

        Returns:
            User object.
        """
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            is_admin=bool(row["is_admin"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by ID.

        Args:
            user_id: User ID.

        Returns:
            User or None if not found.
        """
        row = await self.db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return self._row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address.

        Args:
            email: Lower-case email address.

        Returns:
            User or None if not found.
        """
        row = await self.db.fetch_one("SELECT * FROM users WHERE email = ?", (email,))
        return self._row_to_user(row) if row else None

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get a user by username.

        Args:
            username: Username.

        Returns:
            User or None if not found.
        """
        row = await self.db.fetch_one("SELECT * FROM users WHERE username = ?", (username,))
        return self._row_to_user(row) if row else None

    async def list_all(self) -> list[User]:
        """List all users, oldest first."""
        rows = await self.db.fetch_all("SELECT * FROM users ORDER BY created_at, rowid")
        return [self._row_to_user(row) for row in rows]

    async def update(self, user_id: str, data: dict) -> Optional[User]:
        """Update a user.

        Args:
            user_id: User ID.
            data: Fields to update.

        Returns:
            Updated user or None.

        Raises:
            ConflictError: If the new username or email is already taken.
        """
        if not data:
            return await self.get_by_id(user_id)

        set_clauses = []
        params = []
        for key, value in data.items():
            set_clauses.append(f"{key} = ?")
            params.append(value)

        set_clauses.append("updated_at = ?")
        params.append(utcnow().isoformat())
        params.append(user_id)

        query = f"UPDATE users SET {', '.join(set_clauses)} WHERE id = ?"
        try:
            async with self.db.transaction() as conn:
                await conn.execute(query, tuple(params))
        except sqlite3.IntegrityError as e:
            raise ConflictError("Username or email is already taken") from e

        return await self.get_by_id(user_id)
