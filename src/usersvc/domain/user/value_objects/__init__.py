from usersvc.domain.user.value_objects.email_lookup import (
    EmailLookup,
    EmailLookupStatus,
)
from usersvc.domain.user.value_objects.user_changes import (
    UNSET,
    NewUser,
    Unset,
    UserChanges,
)
from usersvc.domain.user.value_objects.user_query import (
    Pagination,
    SortOrder,
    UserPage,
    UserQuery,
    UserSortField,
)

__all__ = [
    "UNSET",
    "EmailLookup",
    "EmailLookupStatus",
    "NewUser",
    "Pagination",
    "SortOrder",
    "Unset",
    "UserChanges",
    "UserPage",
    "UserQuery",
    "UserSortField",
]
