"""User service: sanitize, validate and pre-check before touching storage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from usersvc.domain.shared.exceptions import ErrorCode, StorageError
from usersvc.domain.user import (
    DuplicateEmailError,
    NewUser,
    User,
    UserChanges,
    UserPage,
    UserQuery,
    UserValidationError,
    sanitize_user_data,
    validate_user_data,
)

if TYPE_CHECKING:
    from usersvc.domain.user import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """
    Application service for the users resource.

    Every write goes through the same steps: sanitize, validate (reporting
    all violations at once), run the duplicate-email pre-check, then hand
    the typed input to the repository. The pre-check is advisory; the
    database unique constraint remains the final authority.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        *,
        email_precheck_fail_closed: bool = False,
    ):
        self._user_repo = user_repository
        self._fail_closed = email_precheck_fail_closed

    async def create_user(self, data: Mapping[str, Any]) -> User:
        logger.info("Creating new user: %s", data.get("email"))

        sanitized = sanitize_user_data(data)
        errors = validate_user_data(sanitized)
        if errors:
            raise UserValidationError(errors)

        new_user = NewUser(
            name=sanitized["name"],
            email=sanitized["email"],
            age=sanitized.get("age"),
        )
        await self._ensure_email_available(new_user.email)

        return await self._user_repo.create(new_user)

    async def list_users(self, query: UserQuery) -> UserPage:
        logger.info("Fetching users with params: %s", query)
        return await self._user_repo.list_users(query)

    async def get_user(self, user_id: int) -> Optional[User]:
        logger.info("Fetching user by ID: %s", user_id)
        return await self._user_repo.find_by_id(user_id)

    async def update_user(
        self,
        user_id: int,
        data: Mapping[str, Any],
    ) -> Optional[User]:
        logger.info("Updating user %s (fields: %s)", user_id, sorted(data))

        sanitized = sanitize_user_data(data)
        errors = validate_user_data(sanitized, is_update=True)
        if errors:
            raise UserValidationError(errors)

        existing = await self._user_repo.find_by_id(user_id)
        if existing is None:
            return None

        changes = UserChanges(**sanitized)
        if "email" in sanitized and sanitized["email"] != existing.email:
            await self._ensure_email_available(sanitized["email"], user_id=user_id)

        return await self._user_repo.update(user_id, changes)

    async def delete_user(self, user_id: int) -> bool:
        logger.info("Deleting user: %s", user_id)
        return await self._user_repo.delete(user_id)

    async def _ensure_email_available(
        self,
        email: str,
        user_id: Optional[int] = None,
    ) -> None:
        lookup = await self._user_repo.find_by_email(email)

        if lookup.is_failed:
            if self._fail_closed:
                raise StorageError(
                    "Unable to verify email uniqueness",
                    code=ErrorCode.EMAIL_LOOKUP_FAILED,
                    details={"email": email},
                ) from lookup.error
            logger.warning(
                "Email pre-check failed for %s; relying on unique constraint",
                email,
            )
            return

        if user_id is None and lookup.is_found:
            raise DuplicateEmailError(email)
        if user_id is not None and lookup.belongs_to_other_than(user_id):
            raise DuplicateEmailError(email)
