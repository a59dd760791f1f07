"""Account service: registration, login and profile management."""

import logging

from marketplace.auth.passwords import hash_password, verify_password
from marketplace.auth.tokens import TokenClient
from marketplace.db.repositories.user_repo import UserRepository
from marketplace.exceptions import (
    AuthenticationError,
    ConflictError,
    UserNotFoundError,
    ValidationError,
)
from marketplace.models.user import PasswordChange, ProfileUpdate, RegisterRequest, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AccountService:
    """Service for user accounts.

    Attributes:
        repo: User repository.
        tokens: Token client for issuing bearer tokens.
    """

    def __init__(self, repo: UserRepository, tokens: TokenClient) -> None:
        self.repo = repo
        self.tokens = tokens

    async def _check_available(
        self,
        username: str | None,
        email: str | None,
        user_id: str | None = None,
    ) -> None:
        if email:
            existing = await self.repo.get_by_email(email)
            if existing and existing.id != user_id:
                raise ConflictError("User with this email already exists")
        if username:
            existing = await self.repo.get_by_username(username)
            if existing and existing.id != user_id:
                raise ConflictError("Username is already taken")

    async def register(self, data: RegisterRequest) -> User:
        """Create an account.

        Args:
            data: Registration data.

        Returns:
            Created user.

        Raises:
            ConflictError: If the email or username is taken.
        """
        username = data.username.strip()
        email = data.email.strip().lower()
        if not username:
            raise ValidationError("username is required", "username")

        await self._check_available(username, email)

        user = User(
            id="",
            username=username,
            email=email,
            password_hash=hash_password(data.password),
        )
        return await self.repo.create(user)

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """Authenticate with email and password.

        Returns:
            Tuple of (bearer token, user).

        Raises:
            AuthenticationError: If the credentials do not match.
        """
        user = await self.repo.get_by_email(email.strip().lower())
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        logger.info(f"User logged in: {user.username}")
        return self.tokens.issue_token(user.id), user

    async def get_profile(self, user_id: str) -> User:
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def update_profile(self, user_id: str, data: ProfileUpdate) -> User:
        """Change the username and/or email of an account.

        Raises:
            UserNotFoundError: If the user does not exist.
            ConflictError: If the new email or username is taken.
        """
        await self.get_profile(user_id)

        changes = {}
        if data.username and data.username.strip():
            changes["username"] = data.username.strip()
        if data.email and data.email.strip():
            changes["email"] = data.email.strip().lower()

        await self._check_available(changes.get("username"), changes.get("email"), user_id)

        updated = await self.repo.update(user_id, changes)
        if not updated:
            raise UserNotFoundError(user_id)
        return updated

    async def change_password(self, user_id: str, data: PasswordChange) -> None:
        """Replace the password of an account.

        Raises:
            UserNotFoundError: If the user does not exist.
            ValidationError: If the current password is wrong or the new one
                is too short.
        """
        user = await self.get_profile(user_id)

        if not verify_password(data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", "current_password")
        if len(data.new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                "new_password",
            )

        await self.repo.update(user_id, {"password_hash": hash_password(data.new_password)})
        logger.info(f"Password changed for user {user.username}")
