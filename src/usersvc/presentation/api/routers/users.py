"""Users router: list, create, fetch, update and delete users."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query, status

from usersvc.domain.user import (
    USER_FIELDS,
    EmptyUpdateError,
    InvalidUserIdError,
    MissingRequiredFieldsError,
    UserNotFoundError,
    UserQuery,
)
from usersvc.presentation.api.dependencies import UserServiceDep
from usersvc.presentation.api.schemas import (
    ApiResponse,
    DeletedUserResponse,
    ErrorResponse,
    UserListResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_REQUIRED_ON_CREATE = ("name", "email")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _parse_int(raw: Optional[str]) -> Optional[int]:
    """Lenient integer coercion for query strings; junk reads as absent."""
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _parse_user_id(raw: str) -> int:
    """Path ids must be plain positive integers ("12", not "12abc" or "-1")."""
    if not raw.isascii() or not raw.isdigit() or int(raw) < 1:
        raise InvalidUserIdError(raw)
    return int(raw)


@router.get(
    "",
    summary="List users",
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
async def list_users(  # NOQA: PLR0913
    service: UserServiceDep,
    page: Optional[str] = Query(None, description="Page number (from 1)"),
    limit: Optional[str] = Query(None, description="Page size (1-100)"),
    name: Optional[str] = Query(None, description="Name contains (any case)"),
    email: Optional[str] = Query(None, description="Email contains (any case)"),
    min_age: Optional[str] = Query(None, alias="minAge"),
    max_age: Optional[str] = Query(None, alias="maxAge"),
    sort_by: Optional[str] = Query(
        None,
        alias="sortBy",
        description="name, email, age or created_at",
    ),
    sort_order: Optional[str] = Query(
        None,
        alias="sortOrder",
        description="ASC or DESC",
    ),
) -> ApiResponse[UserListResponse]:
    """
    List users with filtering, sorting and pagination.

    Out-of-range paging values are clamped and unknown sort values fall
    back to the defaults (``created_at``, ``DESC``).
    """
    query = UserQuery.create(
        page=_parse_int(page),
        limit=_parse_int(limit),
        name=name,
        email=email,
        min_age=_parse_int(min_age),
        max_age=_parse_int(max_age),
        sort_by=sort_by,
        sort_order=sort_order,
    )
    logger.info("GET /users %s", query)

    result = await service.list_users(query)
    return ApiResponse[UserListResponse](
        message="Users retrieved successfully",
        data=UserListResponse.from_domain(result),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)
async def create_user(
    service: UserServiceDep,
    payload: dict[str, Any] = Body(
        ...,
        examples=[{"name": "Ann Lee", "email": "ann@example.com", "age": 29}],
    ),
) -> ApiResponse[UserResponse]:
    """Create a user. ``name`` and ``email`` are required, ``age`` is optional."""
    logger.info("POST /users (email: %s)", payload.get("email"))

    missing = [field for field in _REQUIRED_ON_CREATE if not payload.get(field)]
    if missing:
        raise MissingRequiredFieldsError(missing)

    user = await service.create_user(payload)
    return ApiResponse[UserResponse](
        message="User created successfully",
        data=UserResponse.from_domain(user),
    )


@router.get(
    "/{user_id}",
    summary="Get a user",
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)
async def get_user(user_id: str, service: UserServiceDep) -> ApiResponse[UserResponse]:
    logger.info("GET /users/%s", user_id)
    parsed_id = _parse_user_id(user_id)

    user = await service.get_user(parsed_id)
    if user is None:
        raise UserNotFoundError(parsed_id)

    return ApiResponse[UserResponse](
        message="User retrieved successfully",
        data=UserResponse.from_domain(user),
    )


@router.put(
    "/{user_id}",
    summary="Update a user",
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)
async def update_user(
    user_id: str,
    service: UserServiceDep,
    payload: dict[str, Any] = Body(..., examples=[{"age": 30}]),
) -> ApiResponse[UserResponse]:
    """
    Partially update a user.

    Only the supplied fields change. Sending ``"age": null`` clears the age.
    """
    logger.info("PUT /users/%s (fields: %s)", user_id, sorted(payload))
    parsed_id = _parse_user_id(user_id)

    if not any(field in payload for field in USER_FIELDS):
        raise EmptyUpdateError()

    user = await service.update_user(parsed_id, payload)
    if user is None:
        raise UserNotFoundError(parsed_id)

    return ApiResponse[UserResponse](
        message="User updated successfully",
        data=UserResponse.from_domain(user),
    )


@router.delete(
    "/{user_id}",
    summary="Delete a user",
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)
async def delete_user(
    user_id: str,
    service: UserServiceDep,
) -> ApiResponse[DeletedUserResponse]:
    logger.info("DELETE /users/%s", user_id)
    parsed_id = _parse_user_id(user_id)

    if not await service.delete_user(parsed_id):
        raise UserNotFoundError(parsed_id)

    return ApiResponse[DeletedUserResponse](
        message="User deleted successfully",
        data=DeletedUserResponse(id=parsed_id),
    )
