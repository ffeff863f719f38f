from usersvc.presentation.api.schemas.common import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
)
from usersvc.presentation.api.schemas.users import (
    DeletedUserResponse,
    PaginationResponse,
    UserListResponse,
    UserResponse,
)

__all__ = [
    "ApiResponse",
    "DeletedUserResponse",
    "ErrorResponse",
    "HealthResponse",
    "PaginationResponse",
    "UserListResponse",
    "UserResponse",
]
