"""User domain exceptions."""

from typing import Iterable

from usersvc.domain.shared.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)


class UserValidationError(ValidationError):
    """User data failed validation; carries every message in field order."""

    def __init__(self, errors: Iterable[str]) -> None:
        error_list = list(errors)
        super().__init__(
            f"Validation failed: {', '.join(error_list)}",
            code=ErrorCode.VALIDATION_ERROR,
            errors=error_list,
        )


class InvalidUserIdError(ValidationError):
    """Path id is not a positive integer."""

    def __init__(self, raw_id: str) -> None:
        super().__init__(
            "Invalid user ID. Must be a positive integer.",
            code=ErrorCode.INVALID_USER_ID,
            details={"raw_id": raw_id},
        )


class MissingRequiredFieldsError(ValidationError):
    """Name and/or email missing from a create request."""

    def __init__(self, fields: Iterable[str]) -> None:
        missing = list(fields)
        super().__init__(
            "Name and email are required",
            code=ErrorCode.MISSING_REQUIRED_FIELDS,
            errors=missing,
        )


class EmptyUpdateError(ValidationError):
    """Update request carried no updatable field."""

    def __init__(self) -> None:
        super().__init__(
            "At least one field must be provided for update",
            code=ErrorCode.NO_UPDATE_FIELDS,
        )


class UserNotFoundError(EntityNotFoundError):
    """User not found."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(
            "User not found",
            code=ErrorCode.USER_NOT_FOUND,
            details={"user_id": user_id},
        )


class DuplicateEmailError(ConflictError):
    """Email already registered to another user."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(
            "User with this email already exists",
            code=ErrorCode.DUPLICATE_EMAIL,
            details={"email": email},
        )
