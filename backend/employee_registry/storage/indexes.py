"""
MongoDB index definitions for the employee collection.

Indexes:
- email (unique, across deleted and active records)
- (name, surnames) compound
- department, position, isDeleted

Called from the API lifespan and the `init-indexes` CLI command.
"""

import asyncio
import logging

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, IndexModel

logger = logging.getLogger(__name__)

EMPLOYEE_INDEXES = [
    IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
    IndexModel([("name", ASCENDING), ("surnames", ASCENDING)], name="name_surnames"),
    IndexModel([("department", ASCENDING)], name="department"),
    IndexModel([("position", ASCENDING)], name="position"),
    IndexModel([("isDeleted", ASCENDING)], name="is_deleted"),
]


async def ensure_employee_indexes(collection: AsyncIOMotorCollection) -> list[str]:
    """Create the employee indexes; existing identical indexes are a no-op."""
    names = await asyncio.gather(
        *(collection.create_indexes([index]) for index in EMPLOYEE_INDEXES)
    )
    created = [name for batch in names for name in batch]
    logger.info(f"Ensured indexes on '{collection.name}': {', '.join(created)}")
    return created
