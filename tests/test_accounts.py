"""Tests for registration, login and profile management."""

import pytest

from marketplace.exceptions import AuthenticationError, ConflictError, ValidationError
from marketplace.models.user import PasswordChange, ProfileUpdate, RegisterRequest


def _register(username: str = "steve", email: str = "Steve@Example.com", password: str = "diamond") -> RegisterRequest:
    return RegisterRequest(username=username, email=email, password=password)


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_normalizes_email_and_hashes_password(self, account_service) -> None:
        user = await account_service.register(_register())

        assert user.username == "steve"
        assert user.email == "steve@example.com"
        assert user.password_hash != "diamond"
        assert user.is_admin is False

    @pytest.mark.asyncio
    async def test_duplicate_email(self, account_service) -> None:
        await account_service.register(_register())

        with pytest.raises(ConflictError) as exc_info:
            await account_service.register(_register(username="alex", email="steve@example.com"))
        assert exc_info.value.message == "User with this email already exists"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, account_service) -> None:
        await account_service.register(_register())

        with pytest.raises(ConflictError) as exc_info:
            await account_service.register(_register(email="other@example.com"))
        assert exc_info.value.message == "Username is already taken"


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_issues_token_for_user(self, account_service, token_client) -> None:
        user = await account_service.register(_register())

        token, logged_in = await account_service.login("STEVE@example.com", "diamond")

        assert logged_in.id == user.id
        assert token_client.validate_token(token).user_id == user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email,password",
        [("steve@example.com", "wrong-password"), ("nobody@example.com", "diamond")],
    )
    async def test_bad_credentials(self, account_service, email, password) -> None:
        await account_service.register(_register())

        with pytest.raises(AuthenticationError) as exc_info:
            await account_service.login(email, password)
        assert exc_info.value.message == "Invalid email or password"


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_profile(self, account_service) -> None:
        user = await account_service.register(_register())

        updated = await account_service.update_profile(
            user.id, ProfileUpdate(username="steve2", email="New@Example.com")
        )

        assert updated.username == "steve2"
        assert updated.email == "new@example.com"

    @pytest.mark.asyncio
    async def test_update_profile_conflict(self, account_service) -> None:
        user = await account_service.register(_register())
        await account_service.register(_register(username="alex", email="alex@example.com"))

        with pytest.raises(ConflictError):
            await account_service.update_profile(user.id, ProfileUpdate(username="alex"))

    @pytest.mark.asyncio
    async def test_keeping_own_email_is_not_a_conflict(self, account_service) -> None:
        user = await account_service.register(_register())

        updated = await account_service.update_profile(
            user.id, ProfileUpdate(email="steve@example.com")
        )
        assert updated.email == "steve@example.com"

    @pytest.mark.asyncio
    async def test_change_password(self, account_service) -> None:
        user = await account_service.register(_register())

        await account_service.change_password(
            user.id, PasswordChange(current_password="diamond", new_password="emerald")
        )

        await account_service.login("steve@example.com", "emerald")
        with pytest.raises(AuthenticationError):
            await account_service.login("steve@example.com", "diamond")

    @pytest.mark.asyncio
    async def test_change_password_requires_current_password(self, account_service) -> None:
        user = await account_service.register(_register())

        with pytest.raises(ValidationError) as exc_info:
            await account_service.change_password(
                user.id, PasswordChange(current_password="nope", new_password="emerald")
            )
        assert exc_info.value.message == "Current password is incorrect"
