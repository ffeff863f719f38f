"""Sanitization and validation of user input.

Both functions work on the raw JSON object sent by the client so that type
mistakes (``"name": 42``) can be reported instead of crashing later.
Sanitization always runs first; validation then reports every violation in
field order (name, email, age) without stopping at the first one.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping

USER_FIELDS = ("name", "email", "age")

# Same shape as the identity email check: local@domain.tld
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


@dataclass(frozen=True)
class UserValidationLimits:
    NAME_MIN_LENGTH: int = 2
    NAME_MAX_LENGTH: int = 100
    EMAIL_MAX_LENGTH: int = 255
    AGE_MIN: int = 0
    AGE_MAX: int = 100
    DEFAULT_PAGE: int = 1
    DEFAULT_LIMIT: int = 10
    MAX_LIMIT: int = 100
    # Largest value of the 32-bit id column; also bounds page numbers
    ID_MAX: int = 2**31 - 1
    MAX_PAGE: int = 2**31 - 1


USER_VALIDATION = UserValidationLimits()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_age(value: Any) -> Any:
    """Truncate numeric ages to int; leave anything else for validation."""
    if _is_number(value):
        return math.trunc(value) if math.isfinite(value) else value
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return value
        return math.trunc(number) if math.isfinite(number) else value
    return value


def sanitize_user_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of the known user fields with whitespace/case normalized.

    Unknown keys are dropped. Absent keys stay absent.
    """
    sanitized = {key: data[key] for key in USER_FIELDS if key in data}

    if isinstance(sanitized.get("name"), str):
        sanitized["name"] = sanitized["name"].strip()

    if isinstance(sanitized.get("email"), str):
        sanitized["email"] = sanitized["email"].strip().lower()

    if sanitized.get("age") is not None:
        sanitized["age"] = _coerce_age(sanitized["age"])

    return sanitized


def _validate_name(name: Any) -> str | None:
    if name is None or name == "":
        return "Name is required."
    if not isinstance(name, str):
        return "Name must be a string"
    if len(name) < USER_VALIDATION.NAME_MIN_LENGTH:
        return (
            f"Name must be at least {USER_VALIDATION.NAME_MIN_LENGTH} "
            "characters long"
        )
    if len(name) > USER_VALIDATION.NAME_MAX_LENGTH:
        return (
            f"Name must be no more than {USER_VALIDATION.NAME_MAX_LENGTH} "
            "characters long"
        )
    return None


def _validate_email(email: Any) -> str | None:
    if email is None or email == "":
        return "Email is required."
    if not isinstance(email, str):
        return "Email must be a string"
    if len(email) > USER_VALIDATION.EMAIL_MAX_LENGTH:
        return (
            f"Email must be no more than {USER_VALIDATION.EMAIL_MAX_LENGTH} "
            "characters long"
        )
    if not EMAIL_PATTERN.match(email):
        return "Email must be a valid email address"
    return None


def _validate_age(age: Any) -> str | None:
    # None means "unknown" and is always allowed; 0 is a valid age.
    if age is None:
        return None
    if not _is_number(age) or not math.isfinite(age):
        return "Age must be a number"
    if age < USER_VALIDATION.AGE_MIN:
        return f"Age must be at least {USER_VALIDATION.AGE_MIN}"
    if age > USER_VALIDATION.AGE_MAX:
        return f"Age must be no more than {USER_VALIDATION.AGE_MAX}"
    return None


def validate_user_data(data: Mapping[str, Any], is_update: bool = False) -> list[str]:
    """Check sanitized user data and return every violation found.

    On create all fields are checked (``age`` may be omitted). On update a
    field that is absent from ``data`` is skipped entirely.
    """
    errors: list[str] = []

    if not is_update or "name" in data:
        error = _validate_name(data.get("name"))
        if error:
            errors.append(error)

    if not is_update or "email" in data:
        error = _validate_email(data.get("email"))
        if error:
            errors.append(error)

    if not is_update or "age" in data:
        error = _validate_age(data.get("age"))
        if error:
            errors.append(error)

    return errors
