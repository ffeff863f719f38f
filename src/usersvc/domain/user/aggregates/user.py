"""User record, the single entity of the service."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from usersvc.domain.shared.time import ensure_tz_aware


@dataclass(frozen=True)
class User:
    """
    A persisted user.

    ``id``, ``created_at`` and ``updated_at`` are assigned by storage.
    ``age`` is ``None`` when unknown; zero is a real age.
    """

    id: int
    name: str
    email: str
    age: Optional[int]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def reconstitute(cls, row: Mapping[str, Any]) -> "User":
        """Rebuild a user from a database row mapping."""
        return cls(
            id=int(row["id"]),
            name=row["name"],
            email=row["email"],
            age=row["age"],
            created_at=ensure_tz_aware(row["created_at"]),
            updated_at=ensure_tz_aware(row["updated_at"]),
        )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"
