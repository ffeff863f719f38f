"""FastAPI dependency injection for the users API.

Provides dependencies for:
- Settings and the shared DatabaseConnection (both live on app.state)
- Repository and service instances, built per request
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from usersvc.application.services import UserService
from usersvc.infrastructure.persistence.sqlalchemy import (
    DatabaseConnection,
    UserRepositorySQLAlchemy,
)
from usersvc_config.settings import Settings

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_database(request: Request) -> DatabaseConnection:
    """
    Shared connection manager opened by the application lifespan.

    Raises
    ------
    RuntimeError
        If called outside the lifespan (the pool has not been created)
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        msg = "Database not initialized. Is the application lifespan running?"
        raise RuntimeError(msg)
    return database


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Database = Annotated[DatabaseConnection, Depends(get_database)]


def get_user_repository(database: Database) -> UserRepositorySQLAlchemy:
    return UserRepositorySQLAlchemy(database)


def get_user_service(
    settings: AppSettings,
    repository: Annotated[UserRepositorySQLAlchemy, Depends(get_user_repository)],
) -> UserService:
    return UserService(
        repository,
        email_precheck_fail_closed=settings.email_precheck_fail_closed,
    )


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
