"""Write models for creating and partially updating users."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Optional, Union


class Unset(Enum):
    """Marker for a field that was not supplied at all."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = Unset.UNSET


@dataclass(frozen=True)
class NewUser:
    """Sanitized, validated input for creating a user."""

    name: str
    email: str
    age: Optional[int] = None


@dataclass(frozen=True)
class UserChanges:
    """Sanitized, validated input for a partial update.

    A field left as ``UNSET`` is not touched. ``age=None`` clears the age.
    """

    name: Union[str, Unset] = UNSET
    email: Union[str, Unset] = UNSET
    age: Union[int, None, Unset] = UNSET

    def supplied(self) -> dict[str, Any]:
        """Return only the fields that were supplied, in column order."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @property
    def is_empty(self) -> bool:
        return not self.supplied()
