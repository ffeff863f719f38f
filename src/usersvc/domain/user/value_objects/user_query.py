"""List query for users: filters, sorting and pagination math."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from usersvc.domain.user.validation import USER_VALIDATION

if TYPE_CHECKING:
    from usersvc.domain.user.aggregates.user import User


class UserSortField(str, Enum):
    NAME = "name"
    EMAIL = "email"
    AGE = "age"
    CREATED_AT = "created_at"

    @classmethod
    def parse(cls, value: Optional[str]) -> "UserSortField":
        """Map a raw query value to a sort field, defaulting to created_at."""
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.CREATED_AT


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        """Map a raw query value to a direction, defaulting to DESC."""
        if value and value.strip().upper() == cls.ASC.value:
            return cls.ASC
        return cls.DESC


def _clamp(value: int, lowest: int, highest: int) -> int:
    return min(highest, max(lowest, value))


def _clamp_age_bound(value: Optional[int]) -> Optional[int]:
    """Pull an age filter just outside the valid age range.

    Stored ages lie in [AGE_MIN, AGE_MAX], so the filter matches the same
    rows while staying small enough for any integer column.
    """
    if value is None:
        return None
    return _clamp(
        value,
        USER_VALIDATION.AGE_MIN - 1,
        USER_VALIDATION.AGE_MAX + 1,
    )


@dataclass(frozen=True)
class UserQuery:
    """Normalized list request.

    Use :meth:`create` to build one from loosely-typed input; it applies the
    defaults, clamps ``page`` to [1, MAX_PAGE] and ``limit`` to
    [1, MAX_LIMIT], and bounds the age filters.
    """

    page: int = USER_VALIDATION.DEFAULT_PAGE
    limit: int = USER_VALIDATION.DEFAULT_LIMIT
    name: Optional[str] = None
    email: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    sort_by: UserSortField = UserSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @classmethod
    def create(  # NOQA: PLR0913
        cls,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        name: Optional[str] = None,
        email: Optional[str] = None,
        min_age: Optional[int] = None,
        max_age: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> "UserQuery":
        if page is None:
            page = USER_VALIDATION.DEFAULT_PAGE
        if limit is None:
            limit = USER_VALIDATION.DEFAULT_LIMIT

        return cls(
            page=_clamp(page, 1, USER_VALIDATION.MAX_PAGE),
            limit=_clamp(limit, 1, USER_VALIDATION.MAX_LIMIT),
            name=name or None,
            email=email or None,
            min_age=_clamp_age_bound(min_age),
            max_age=_clamp_age_bound(max_age),
            sort_by=UserSortField.parse(sort_by),
            sort_order=SortOrder.parse(sort_order),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_filters(self) -> bool:
        return any(
            value is not None
            for value in (self.name, self.email, self.min_age, self.max_age)
        )


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def compute(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit)
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


@dataclass(frozen=True)
class UserPage:
    """One page of users plus the unpaginated total of the filtered set."""

    users: list["User"]
    pagination: Pagination
