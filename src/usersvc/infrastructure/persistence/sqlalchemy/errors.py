"""Translation of driver/SQLAlchemy errors into StorageError."""

from typing import Optional

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from usersvc.domain.shared.exceptions import ErrorCode, StorageError

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"

_SQLSTATE_ERRORS: dict[str, tuple[str, ErrorCode]] = {
    UNIQUE_VIOLATION: ("Resource already exists", ErrorCode.CONFLICT),
    FOREIGN_KEY_VIOLATION: (
        "Resource does not exist",
        ErrorCode.CONSTRAINT_VIOLATION,
    ),
    CHECK_VIOLATION: ("Invalid data provided", ErrorCode.CONSTRAINT_VIOLATION),
    NOT_NULL_VIOLATION: ("Required field is missing", ErrorCode.CONSTRAINT_VIOLATION),
}


def get_sqlstate(exc: BaseException) -> Optional[str]:
    """Return the SQLSTATE of a driver error, if the driver exposes one.

    asyncpg (through SQLAlchemy's adapter) and psycopg both set ``sqlstate``
    or ``pgcode`` on the DBAPI exception.
    """
    orig = getattr(exc, "orig", exc)
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    return None


def is_unique_violation(exc: BaseException) -> bool:
    sqlstate = get_sqlstate(exc)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION
    # SQLite has no SQLSTATE; fall back on the message
    message = str(getattr(exc, "orig", exc)).lower()
    return isinstance(exc, IntegrityError) and "unique" in message


def is_connection_error(exc: BaseException) -> bool:
    if isinstance(exc, (PoolTimeoutError, InterfaceError, OSError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        sqlstate = get_sqlstate(exc)
        # Class 08 is "connection exception"
        return sqlstate is None or sqlstate.startswith("08")
    return False


def map_database_error(
    exc: SQLAlchemyError | OSError,
    message: str = "Database operation failed",
) -> StorageError:
    """Build the StorageError that replaces a raw driver error.

    Constraint violations keep their generic description; connection
    problems and anything unrecognised use ``message``.
    """
    sqlstate = get_sqlstate(exc)
    details = {"sqlstate": sqlstate, "error_type": type(exc).__name__}

    if sqlstate in _SQLSTATE_ERRORS:
        text, code = _SQLSTATE_ERRORS[sqlstate]
        return StorageError(text, code=code, details=details)

    if isinstance(exc, IntegrityError):
        if is_unique_violation(exc):
            return StorageError(
                "Resource already exists",
                code=ErrorCode.CONFLICT,
                details=details,
            )
        return StorageError(
            "Invalid data provided",
            code=ErrorCode.CONSTRAINT_VIOLATION,
            details=details,
        )

    if is_connection_error(exc):
        return StorageError(
            message,
            code=ErrorCode.DATABASE_UNAVAILABLE,
            details=details,
        )

    return StorageError(message, code=ErrorCode.DATABASE_ERROR, details=details)
