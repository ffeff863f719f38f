"""SQLAlchemy (async) persistence for the users table."""

from usersvc.infrastructure.persistence.sqlalchemy.database import (
    DatabaseConnection,
    QueryResult,
)
from usersvc.infrastructure.persistence.sqlalchemy.models import Base, UserModel
from usersvc.infrastructure.persistence.sqlalchemy.repositories import (
    UserRepositorySQLAlchemy,
)

__all__ = [
    "Base",
    "DatabaseConnection",
    "QueryResult",
    "UserModel",
    "UserRepositorySQLAlchemy",
]
