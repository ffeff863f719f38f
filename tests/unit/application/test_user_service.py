"""Unit tests for UserService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from usersvc.application.services import UserService
from usersvc.domain.shared.exceptions import ErrorCode, StorageError
from usersvc.domain.user import (
    DuplicateEmailError,
    EmailLookup,
    NewUser,
    User,
    UserChanges,
    UserQuery,
    UserValidationError,
)

TEST_EMAIL = "ann@example.com"
NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def _user(user_id: int = 1, email: str = TEST_EMAIL, age: int | None = 29) -> User:
    return User(
        id=user_id,
        name="Ann Lee",
        email=email,
        age=age,
        created_at=NOW,
        updated_at=NOW,
    )


class TestUserServiceCreate:
    """Tests for user creation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.user_repo = AsyncMock()
        self.user_repo.find_by_email.return_value = EmailLookup.not_found()
        self.user_repo.create.return_value = _user()
        self.service = UserService(self.user_repo)

    @pytest.mark.asyncio
    async def test_create_sanitizes_before_storing(self):
        # Act
        user = await self.service.create_user(
            {"name": "  Ann Lee ", "email": " ANN@Example.com ", "age": 29},
        )

        # Assert
        assert user.email == TEST_EMAIL
        self.user_repo.find_by_email.assert_awaited_once_with(TEST_EMAIL)
        self.user_repo.create.assert_awaited_once_with(
            NewUser(name="Ann Lee", email=TEST_EMAIL, age=29),
        )

    @pytest.mark.asyncio
    async def test_create_without_age(self):
        await self.service.create_user({"name": "Ann Lee", "email": TEST_EMAIL})

        self.user_repo.create.assert_awaited_once_with(
            NewUser(name="Ann Lee", email=TEST_EMAIL, age=None),
        )

    @pytest.mark.asyncio
    async def test_validation_errors_stop_before_storage(self):
        # Act & Assert
        with pytest.raises(UserValidationError) as exc_info:
            await self.service.create_user(
                {"name": "A", "email": "nope", "age": 150},
            )

        assert exc_info.value.errors == [
            "Name must be at least 2 characters long",
            "Email must be a valid email address",
            "Age must be no more than 100",
        ]
        assert exc_info.value.code is ErrorCode.VALIDATION_ERROR
        self.user_repo.find_by_email.assert_not_awaited()
        self.user_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected_by_precheck(self):
        # Arrange
        self.user_repo.find_by_email.return_value = EmailLookup.found(_user())

        # Act & Assert
        with pytest.raises(DuplicateEmailError):
            await self.service.create_user(
                {"name": "Ann Again", "email": "Ann@Example.com"},
            )

        self.user_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_precheck_proceeds_by_default(self):
        # Arrange
        self.user_repo.find_by_email.return_value = EmailLookup.failed(
            ConnectionResetError("connection lost"),
        )

        # Act
        await self.service.create_user({"name": "Ann Lee", "email": TEST_EMAIL})

        # Assert - the unique constraint is left to decide
        self.user_repo.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_precheck_rejects_when_fail_closed(self):
        # Arrange
        service = UserService(self.user_repo, email_precheck_fail_closed=True)
        self.user_repo.find_by_email.return_value = EmailLookup.failed(
            ConnectionResetError("connection lost"),
        )

        # Act & Assert
        with pytest.raises(StorageError) as exc_info:
            await service.create_user({"name": "Ann Lee", "email": TEST_EMAIL})

        assert exc_info.value.code is ErrorCode.EMAIL_LOOKUP_FAILED
        self.user_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_race_lost_at_insert_surfaces_as_duplicate(self):
        # Arrange - pre-check passes, the constraint fires on insert
        self.user_repo.create.side_effect = DuplicateEmailError(TEST_EMAIL)

        # Act & Assert
        with pytest.raises(DuplicateEmailError):
            await self.service.create_user({"name": "Ann Lee", "email": TEST_EMAIL})


class TestUserServiceUpdate:
    """Tests for partial updates."""

    def setup_method(self):
        """Set up test fixtures."""
        self.user_repo = AsyncMock()
        self.user_repo.find_by_id.return_value = _user(user_id=1)
        self.user_repo.find_by_email.return_value = EmailLookup.not_found()
        self.user_repo.update.return_value = _user(user_id=1, age=30)
        self.service = UserService(self.user_repo)

    @pytest.mark.asyncio
    async def test_only_supplied_fields_are_changed(self):
        await self.service.update_user(1, {"age": 30})

        self.user_repo.update.assert_awaited_once_with(1, UserChanges(age=30))

    @pytest.mark.asyncio
    async def test_null_age_clears_the_age(self):
        await self.service.update_user(1, {"age": None})

        self.user_repo.update.assert_awaited_once_with(1, UserChanges(age=None))

    @pytest.mark.asyncio
    async def test_missing_user_returns_none(self):
        # Arrange
        self.user_repo.find_by_id.return_value = None

        # Act
        result = await self.service.update_user(999, {"name": "Ann Lee"})

        # Assert
        assert result is None
        self.user_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validation_runs_before_lookup(self):
        with pytest.raises(UserValidationError) as exc_info:
            await self.service.update_user(1, {"age": 150})

        assert exc_info.value.errors == ["Age must be no more than 100"]
        self.user_repo.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unchanged_email_skips_precheck(self):
        await self.service.update_user(1, {"email": "  ANN@example.com"})

        self.user_repo.find_by_email.assert_not_awaited()
        self.user_repo.update.assert_awaited_once_with(
            1,
            UserChanges(email=TEST_EMAIL),
        )

    @pytest.mark.asyncio
    async def test_email_taken_by_other_user_is_rejected(self):
        # Arrange
        self.user_repo.find_by_email.return_value = EmailLookup.found(
            _user(user_id=2, email="bob@example.com"),
        )

        # Act & Assert
        with pytest.raises(DuplicateEmailError):
            await self.service.update_user(1, {"email": "bob@example.com"})

        self.user_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_free_email_is_accepted(self):
        await self.service.update_user(1, {"email": "ann.lee@example.com"})

        self.user_repo.find_by_email.assert_awaited_once_with("ann.lee@example.com")
        self.user_repo.update.assert_awaited_once()


class TestUserServiceReads:
    """Tests for list, get and delete pass-through."""

    def setup_method(self):
        """Set up test fixtures."""
        self.user_repo = AsyncMock()
        self.service = UserService(self.user_repo)

    @pytest.mark.asyncio
    async def test_list_passes_query_through(self):
        query = UserQuery.create(min_age=20, sort_by="age", sort_order="ASC")

        await self.service.list_users(query)

        self.user_repo.list_users.assert_awaited_once_with(query)

    @pytest.mark.asyncio
    async def test_get_missing_user_returns_none(self):
        self.user_repo.find_by_id.return_value = None

        assert await self.service.get_user(42) is None

    @pytest.mark.asyncio
    async def test_delete_reports_whether_a_row_was_removed(self):
        self.user_repo.delete.return_value = False

        assert await self.service.delete_user(42) is False
        self.user_repo.delete.assert_awaited_once_with(42)
