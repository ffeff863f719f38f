"""Outcome of the duplicate-email pre-check."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from usersvc.domain.user.aggregates.user import User


class EmailLookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class EmailLookup:
    """Result of looking a user up by email.

    A failed lookup is kept distinct from "not found" so callers can decide
    whether to proceed (the unique constraint still guards the write) or to
    refuse the write.
    """

    status: EmailLookupStatus
    user: Optional["User"] = None
    error: Optional[BaseException] = None

    @classmethod
    def found(cls, user: "User") -> "EmailLookup":
        return cls(status=EmailLookupStatus.FOUND, user=user)

    @classmethod
    def not_found(cls) -> "EmailLookup":
        return cls(status=EmailLookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: BaseException) -> "EmailLookup":
        return cls(status=EmailLookupStatus.FAILED, error=error)

    @property
    def is_found(self) -> bool:
        return self.status is EmailLookupStatus.FOUND

    @property
    def is_failed(self) -> bool:
        return self.status is EmailLookupStatus.FAILED

    def belongs_to_other_than(self, user_id: int) -> bool:
        """True when the email is taken by a user other than ``user_id``."""
        return self.is_found and self.user is not None and self.user.id != user_id
