"""SQLAlchemy model for the users table."""

from typing import Optional

from sqlalchemy import DDL, CheckConstraint, Identity, Index, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column

from usersvc.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class UserModel(Base, TimestampMixin):
    """SQLAlchemy model for persisting users.

    The unique and check constraints here are the final authority; the
    application-level checks only exist to give friendlier errors.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("length(name) >= 2", name="ck_users_name_length"),
        CheckConstraint("age >= 0 AND age <= 100", name="ck_users_age_range"),
        Index("idx_users_name", "name"),
        Index("idx_users_created_at", "created_at"),
        Index("idx_users_age", "age"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, Identity(always=False), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email})>"


# PostgreSQL keeps updated_at fresh even for writes that bypass the service.
_updated_at_function = DDL(
    """
    CREATE OR REPLACE FUNCTION update_updated_at_column()
    RETURNS TRIGGER AS $$
    BEGIN
        NEW.updated_at = NOW();
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql;
    """
)
_drop_updated_at_trigger = DDL(
    "DROP TRIGGER IF EXISTS updated_users_updated_at ON users",
)
_updated_at_trigger = DDL(
    """
    CREATE TRIGGER updated_users_updated_at
        BEFORE UPDATE ON users
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """
)

event.listen(
    UserModel.__table__,
    "after_create",
    _updated_at_function.execute_if(dialect="postgresql"),
)
event.listen(
    UserModel.__table__,
    "after_create",
    _drop_updated_at_trigger.execute_if(dialect="postgresql"),
)
event.listen(
    UserModel.__table__,
    "after_create",
    _updated_at_trigger.execute_if(dialect="postgresql"),
)
