"""Unit tests for translating driver errors into StorageError."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from usersvc.domain.shared.exceptions import ErrorCode
from usersvc.infrastructure.persistence.sqlalchemy.errors import (
    get_sqlstate,
    is_connection_error,
    is_unique_violation,
    map_database_error,
)


class FakeDriverError(Exception):
    """DBAPI-style error carrying a SQLSTATE, like asyncpg's."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity(sqlstate: str | None, message: str = "violation") -> IntegrityError:
    orig = FakeDriverError(message, sqlstate)
    return IntegrityError("INSERT INTO users ...", {}, orig)


class TestSqlstateHelpers:
    def test_reads_sqlstate_from_driver_error(self):
        assert get_sqlstate(_integrity("23505")) == "23505"

    def test_missing_sqlstate(self):
        assert get_sqlstate(_integrity(None)) is None

    def test_unique_violation_by_sqlstate(self):
        assert is_unique_violation(_integrity("23505"))
        assert not is_unique_violation(_integrity("23514"))

    def test_unique_violation_by_sqlite_message(self):
        exc = _integrity(None, "UNIQUE constraint failed: users.email")

        assert is_unique_violation(exc)

    def test_connection_errors(self):
        assert is_connection_error(ConnectionRefusedError("refused"))
        assert is_connection_error(PoolTimeoutError("pool exhausted"))
        assert is_connection_error(
            OperationalError("SELECT 1", {}, FakeDriverError("gone", "08006")),
        )
        assert not is_connection_error(
            ProgrammingError("SELECT", {}, FakeDriverError("syntax", "42601")),
        )


class TestMapDatabaseError:
    @pytest.mark.parametrize(
        ("sqlstate", "code", "message"),
        [
            ("23505", ErrorCode.CONFLICT, "Resource already exists"),
            ("23503", ErrorCode.CONSTRAINT_VIOLATION, "Resource does not exist"),
            ("23514", ErrorCode.CONSTRAINT_VIOLATION, "Invalid data provided"),
            ("23502", ErrorCode.CONSTRAINT_VIOLATION, "Required field is missing"),
        ],
    )
    def test_constraint_violations(self, sqlstate, code, message):
        error = map_database_error(_integrity(sqlstate))

        assert error.code is code
        assert error.message == message
        assert error.details["sqlstate"] == sqlstate

    def test_sqlite_check_failure(self):
        exc = _integrity(None, "CHECK constraint failed: ck_users_age_range")

        assert map_database_error(exc).code is ErrorCode.CONSTRAINT_VIOLATION

    def test_connection_failure_is_unavailable(self):
        error = map_database_error(OSError("network down"), "Failed to fetch users")

        assert error.code is ErrorCode.DATABASE_UNAVAILABLE
        assert error.message == "Failed to fetch users"

    def test_anything_else_is_a_generic_database_error(self):
        exc = ProgrammingError("SELECT", {}, FakeDriverError("syntax", "42601"))

        error = map_database_error(exc, "Failed to fetch user")

        assert error.code is ErrorCode.DATABASE_ERROR
        assert error.message == "Failed to fetch user"
        assert "SELECT" not in error.message
