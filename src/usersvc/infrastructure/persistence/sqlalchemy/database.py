"""Connection manager around the async SQLAlchemy engine and its pool.

One ``DatabaseConnection`` is created per process by the application
lifespan (or the CLI) and handed to the repositories. It owns the pool:

- ``initialize()`` creates the engine and runs a liveness probe
- ``query()`` runs one parameterized statement in its own transaction
- ``get_client()`` / ``transaction()`` expose a single connection for
  multi-statement work
- ``close()`` disposes the pool and is safe to call more than once
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import RowMapping, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import QueuePool
from sqlalchemy.sql import Executable

from usersvc.infrastructure.persistence.sqlalchemy.models import Base

if TYPE_CHECKING:
    from usersvc_config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Fully fetched result of a statement."""

    rows: list[RowMapping] = field(default_factory=list)
    rowcount: int = 0
    duration_ms: float = 0.0

    def first(self) -> Optional[RowMapping]:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()))


class DatabaseConnection:
    """Owns the engine (and therefore the connection pool) for the process."""

    def __init__(  # NOQA: PLR0913
        self,
        url: str,
        *,
        pool_size: int = 20,
        max_overflow: int = 0,
        pool_timeout: float = 2.0,
        idle_timeout: int = 30,
        echo: bool = False,
    ) -> None:
        self._url = url
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_timeout = pool_timeout
        self._idle_timeout = idle_timeout
        self._echo = echo
        self._engine: AsyncEngine | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseConnection:
        return cls(
            settings.sqlalchemy_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            idle_timeout=settings.db_idle_timeout,
            echo=settings.db_echo,
        )

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def dialect_name(self) -> str:
        return make_url(self._url).get_backend_name()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            msg = "Database pool not initialized. Call initialize() first."
            raise RuntimeError(msg)
        return self._engine

    def _create_engine(self) -> AsyncEngine:
        if self.dialect_name == "sqlite":
            # SQLite picks its own pool class; sizing options do not apply
            return create_async_engine(self._url, echo=self._echo)

        return create_async_engine(
            self._url,
            echo=self._echo,
            pool_size=self._pool_size,
            max_overflow=self._max_overflow,
            pool_timeout=self._pool_timeout,
            pool_recycle=self._idle_timeout,
            pool_pre_ping=True,  # Verify connections before use
            connect_args={"timeout": self._pool_timeout},
        )

    async def initialize(self) -> None:
        """Create the pool (once) and verify the database answers."""
        if self._engine is None:
            self._engine = self._create_engine()
            logger.info(
                "Database connection pool created (%s, pool_size=%s)",
                self.dialect_name,
                self._pool_size,
            )

        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(text("SELECT CURRENT_TIMESTAMP"))
                now = result.scalar_one()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database connection test failed: %s", e)
            raise

        logger.info("Database connection test successful (server time: %s)", now)

    async def create_schema(self) -> None:
        """Create missing tables (idempotent, existing data is never touched)."""
        logger.info("Ensuring database schema exists...")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema is up to date")

    async def drop_schema(self) -> None:
        """Drop all tables (tests and development resets only)."""
        logger.warning("Dropping all database tables...")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def query(
        self,
        statement: Executable | str,
        params: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
    ) -> QueryResult:
        """Execute one parameterized statement in its own transaction.

        Plain strings are wrapped in ``text()`` and must use ``:name`` bind
        parameters. Failures are logged with the statement and its parameters
        and then re-raised unchanged.
        """
        if isinstance(statement, str):
            statement = text(statement)

        start = time.perf_counter()
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(statement, params)
                rows = list(result.mappings().all()) if result.returns_rows else []
                rowcount = result.rowcount
        except (SQLAlchemyError, OSError) as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error("Database query error after %.1fms: %s", duration_ms, e)
            logger.error("Failed query: %s", statement)
            logger.error("Query parameters: %r", params)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug("Query executed in %.1fms", duration_ms)
        return QueryResult(rows=rows, rowcount=rowcount, duration_ms=duration_ms)

    @asynccontextmanager
    async def get_client(self) -> AsyncIterator[AsyncConnection]:
        """Check a single connection out of the pool for several statements.

        Nothing is committed implicitly; use the transaction helpers.
        """
        async with self.engine.connect() as conn:
            yield conn

    async def begin_transaction(self, conn: AsyncConnection) -> None:
        await conn.begin()

    async def commit_transaction(self, conn: AsyncConnection) -> None:
        await conn.commit()

    async def rollback_transaction(self, conn: AsyncConnection) -> None:
        await conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncConnection]:
        """Connection inside a transaction; commit on success, else rollback."""
        async with self.get_client() as conn:
            await self.begin_transaction(conn)
            try:
                yield conn
            except BaseException:
                await self.rollback_transaction(conn)
                raise
            await self.commit_transaction(conn)

    def pool_stats(self) -> dict[str, Any]:
        """Current pool counters (empty when the pool does not exist)."""
        if self._engine is None:
            return {}

        pool = self._engine.pool
        if isinstance(pool, QueuePool):
            return {
                "size": pool.size(),
                "checked_in": pool.checkedin(),
                "checked_out": pool.checkedout(),
                "overflow": pool.overflow(),
            }
        return {"status": pool.status()}

    async def close(self) -> None:
        """Dispose the pool; a no-op when it was never created."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        logger.info("Database connection pool closed")
