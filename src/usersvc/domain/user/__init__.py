"""User domain: the user record, its validation rules and query objects."""

from usersvc.domain.user.aggregates import User
from usersvc.domain.user.exceptions import (
    DuplicateEmailError,
    EmptyUpdateError,
    InvalidUserIdError,
    MissingRequiredFieldsError,
    UserNotFoundError,
    UserValidationError,
)
from usersvc.domain.user.repositories import UserRepository
from usersvc.domain.user.validation import (
    USER_FIELDS,
    USER_VALIDATION,
    sanitize_user_data,
    validate_user_data,
)
from usersvc.domain.user.value_objects import (
    UNSET,
    EmailLookup,
    EmailLookupStatus,
    NewUser,
    Pagination,
    SortOrder,
    Unset,
    UserChanges,
    UserPage,
    UserQuery,
    UserSortField,
)

__all__ = [
    "UNSET",
    "USER_FIELDS",
    "USER_VALIDATION",
    "DuplicateEmailError",
    "EmailLookup",
    "EmailLookupStatus",
    "EmptyUpdateError",
    "InvalidUserIdError",
    "MissingRequiredFieldsError",
    "NewUser",
    "Pagination",
    "SortOrder",
    "Unset",
    "User",
    "UserChanges",
    "UserNotFoundError",
    "UserPage",
    "UserQuery",
    "UserRepository",
    "UserSortField",
    "UserValidationError",
    "sanitize_user_data",
    "validate_user_data",
]
