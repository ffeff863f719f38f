"""SQLAlchemy implementation of UserRepository.

Statements are built with the Core expression language, so every value
supplied by a client reaches the database as a bound parameter. Sort columns
come from a fixed whitelist, never from raw input.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from usersvc.domain.shared.time import utc_now
from usersvc.domain.user import (
    USER_VALIDATION,
    DuplicateEmailError,
    EmailLookup,
    NewUser,
    Pagination,
    SortOrder,
    User,
    UserChanges,
    UserPage,
    UserQuery,
    UserRepository,
    UserSortField,
)
from usersvc.infrastructure.persistence.sqlalchemy.database import DatabaseConnection
from usersvc.infrastructure.persistence.sqlalchemy.errors import (
    is_unique_violation,
    map_database_error,
)
from usersvc.infrastructure.persistence.sqlalchemy.models import UserModel

logger = logging.getLogger(__name__)

users = UserModel.__table__

_SORT_COLUMNS = {
    UserSortField.NAME: users.c.name,
    UserSortField.EMAIL: users.c.email,
    UserSortField.AGE: users.c.age,
    UserSortField.CREATED_AT: users.c.created_at,
}


class UserRepositorySQLAlchemy(UserRepository):
    """UserRepository backed by the shared DatabaseConnection."""

    def __init__(self, database: DatabaseConnection) -> None:
        self._db = database

    async def create(self, new_user: NewUser) -> User:
        now = utc_now()
        stmt = (
            insert(users)
            .values(
                name=new_user.name,
                email=new_user.email,
                age=new_user.age,
                created_at=now,
                updated_at=now,
            )
            .returning(*users.c)
        )

        try:
            result = await self._db.query(stmt)
        except IntegrityError as e:
            if is_unique_violation(e):
                # Lost the race with a concurrent insert after the pre-check
                raise DuplicateEmailError(new_user.email) from e
            raise map_database_error(e, "Failed to create user") from e
        except (SQLAlchemyError, OSError) as e:
            raise map_database_error(e, "Failed to create user") from e

        user = User.reconstitute(result.rows[0])
        logger.info("Created user: %s (email: %s)", user.id, user.email)
        return user

    async def find_by_id(self, user_id: int) -> Optional[User]:
        if not _is_storable_id(user_id):
            return None

        stmt = select(users).where(users.c.id == user_id)

        try:
            result = await self._db.query(stmt)
        except (SQLAlchemyError, OSError) as e:
            raise map_database_error(e, "Failed to fetch user") from e

        row = result.first()
        if row is None:
            logger.debug("User not found: %s", user_id)
            return None
        return User.reconstitute(row)

    async def find_by_email(self, email: str) -> EmailLookup:
        stmt = select(users).where(users.c.email == email)

        try:
            result = await self._db.query(stmt)
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Email lookup failed for %s: %s", email, e)
            return EmailLookup.failed(e)

        row = result.first()
        if row is None:
            return EmailLookup.not_found()
        return EmailLookup.found(User.reconstitute(row))

    async def list_users(self, query: UserQuery) -> UserPage:
        conditions = self._build_conditions(query)

        count_stmt = select(func.count()).select_from(users).where(*conditions)
        page_stmt = (
            select(users)
            .where(*conditions)
            .order_by(*self._build_ordering(query))
            .limit(query.limit)
            .offset(query.offset)
        )

        try:
            total = int((await self._db.query(count_stmt)).scalar() or 0)
            result = await self._db.query(page_stmt)
        except (SQLAlchemyError, OSError) as e:
            raise map_database_error(e, "Failed to fetch users") from e

        pagination = Pagination.compute(query.page, query.limit, total)
        page_users = [User.reconstitute(row) for row in result.rows]
        logger.info(
            "Retrieved %d users (page %d/%d)",
            len(page_users),
            pagination.page,
            pagination.total_pages,
        )
        return UserPage(users=page_users, pagination=pagination)

    async def update(self, user_id: int, changes: UserChanges) -> Optional[User]:
        if not _is_storable_id(user_id):
            return None

        values = changes.supplied()
        values["updated_at"] = utc_now()
        stmt = (
            update(users)
            .where(users.c.id == user_id)
            .values(**values)
            .returning(*users.c)
        )

        try:
            result = await self._db.query(stmt)
        except IntegrityError as e:
            if is_unique_violation(e) and "email" in values:
                raise DuplicateEmailError(values["email"]) from e
            raise map_database_error(e, "Failed to update user") from e
        except (SQLAlchemyError, OSError) as e:
            raise map_database_error(e, "Failed to update user") from e

        row = result.first()
        if row is None:
            return None

        logger.info("Updated user: %s (fields: %s)", user_id, sorted(values))
        return User.reconstitute(row)

    async def delete(self, user_id: int) -> bool:
        if not _is_storable_id(user_id):
            logger.info("User not found for deletion: %s", user_id)
            return False

        stmt = delete(users).where(users.c.id == user_id).returning(users.c.id)

        try:
            result = await self._db.query(stmt)
        except (SQLAlchemyError, OSError) as e:
            raise map_database_error(e, "Failed to delete user") from e

        if not result.rows:
            logger.info("User not found for deletion: %s", user_id)
            return False

        logger.info("Deleted user: %s", user_id)
        return True

    def _build_conditions(self, query: UserQuery) -> list:
        conditions = []
        if query.name is not None:
            conditions.append(_contains_ci(users.c.name, query.name))
        if query.email is not None:
            conditions.append(_contains_ci(users.c.email, query.email))
        if query.min_age is not None:
            conditions.append(users.c.age >= query.min_age)
        if query.max_age is not None:
            conditions.append(users.c.age <= query.max_age)
        return conditions

    def _build_ordering(self, query: UserQuery) -> list:
        column = _SORT_COLUMNS[query.sort_by]
        if query.sort_order is SortOrder.ASC:
            primary = column.asc().nulls_last()
            tiebreak = users.c.id.asc()
        else:
            primary = column.desc().nulls_last()
            tiebreak = users.c.id.desc()
        return [primary, tiebreak]


def _contains_ci(column, value: str):
    """Case-insensitive substring match; LIKE wildcards in ``value`` are literal."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _is_storable_id(user_id: int) -> bool:
    """Ids outside the id column's range cannot exist and never reach the driver."""
    return 1 <= user_id <= USER_VALIDATION.ID_MAX
