"""User schemas for API responses.

Request bodies are taken as plain JSON objects and checked by the domain
validator, which reports type mistakes alongside range violations.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from usersvc.domain.user import Pagination, User, UserPage


class UserResponse(BaseModel):
    """Response schema for a single user."""

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Lower-cased email address")
    age: Optional[int] = Field(None, description="Age, null when unknown")
    created_at: datetime
    updated_at: datetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": 1,
                "name": "Ann Lee",
                "email": "ann@example.com",
                "age": 29,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            },
        },
    }

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            age=user.age,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class PaginationResponse(BaseModel):
    """Pagination block of a list response."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int = Field(..., description="Matching users across all pages")
    total_pages: int = Field(..., alias="totalPages")
    has_next: bool = Field(..., alias="hasNext")
    has_prev: bool = Field(..., alias="hasPrev")

    @classmethod
    def from_domain(cls, pagination: Pagination) -> "PaginationResponse":
        return cls(
            page=pagination.page,
            limit=pagination.limit,
            total=pagination.total,
            total_pages=pagination.total_pages,
            has_next=pagination.has_next,
            has_prev=pagination.has_prev,
        )


class UserListResponse(BaseModel):
    """Response schema for a page of users."""

    users: list[UserResponse]
    pagination: PaginationResponse

    @classmethod
    def from_domain(cls, page: UserPage) -> "UserListResponse":
        return cls(
            users=[UserResponse.from_domain(user) for user in page.users],
            pagination=PaginationResponse.from_domain(page.pagination),
        )


class DeletedUserResponse(BaseModel):
    id: int
