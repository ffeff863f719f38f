"""Sample data for a fresh database.

Usage:
    usersvc init-db --seed
"""

import logging

from usersvc.domain.user import NewUser
from usersvc.infrastructure.persistence.sqlalchemy.repositories import (
    UserRepositorySQLAlchemy,
)

logger = logging.getLogger(__name__)

SAMPLE_USERS = (
    NewUser(name="John Doe", email="john@john.com", age=30),
    NewUser(name="Jane Smith", email="jane@jane.com", age=25),
    NewUser(name="Bob Bobertson", email="bob@bob.com", age=35),
)


async def seed_sample_users(repository: UserRepositorySQLAlchemy) -> int:
    """Insert the sample users whose email is not taken yet.

    Returns the number of users created.
    """
    created = 0
    for sample in SAMPLE_USERS:
        lookup = await repository.find_by_email(sample.email)
        if lookup.is_found:
            logger.info("Sample user already present: %s", sample.email)
            continue
        await repository.create(sample)
        created += 1
    return created
