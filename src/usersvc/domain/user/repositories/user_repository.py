"""User repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from usersvc.domain.user.aggregates.user import User
from usersvc.domain.user.value_objects import (
    EmailLookup,
    NewUser,
    UserChanges,
    UserPage,
    UserQuery,
)


class UserRepository(ABC):
    """Repository interface for users.

    "Not found" is a normal result (``None`` / ``False``), never an exception.
    """

    @abstractmethod
    async def create(self, new_user: NewUser) -> User:
        """Insert a user and return the stored record."""

    @abstractmethod
    async def find_by_id(self, user_id: int) -> Optional[User]:
        """Find a user by primary key."""

    @abstractmethod
    async def find_by_email(self, email: str) -> EmailLookup:
        """Look a user up by exact (normalized) email."""

    @abstractmethod
    async def list_users(self, query: UserQuery) -> UserPage:
        """Return one page of users matching the query filters."""

    @abstractmethod
    async def update(self, user_id: int, changes: UserChanges) -> Optional[User]:
        """Apply a partial update; ``None`` if the user does not exist."""

    @abstractmethod
    async def delete(self, user_id: int) -> bool:
        """Delete a user; ``False`` if nothing was removed."""
