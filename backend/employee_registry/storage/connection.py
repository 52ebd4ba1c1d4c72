"""
MongoDB connection management via Motor (async driver).

This module provides:
- A process-wide Motor client, opened by init_db() and closed by close_db()
- Accessors for the configured database and employee collection
- Health check utilities
"""

import logging
from typing import Optional

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import PyMongoError

from employee_registry.config import MongoConfig, Settings, get_settings

logger = logging.getLogger(__name__)

# Global MongoDB client instance
_client: Optional[AsyncIOMotorClient] = None
_mongo_config: Optional[MongoConfig] = None


async def init_db(settings: Optional[Settings] = None) -> AsyncIOMotorClient:
    """
    Open the MongoDB client.

    Motor connects lazily, so this never blocks on the server; use
    check_db_connection() to verify reachability.
    """
    global _client, _mongo_config

    settings = settings or get_settings()
    if _client is not None:
        return _client

    _mongo_config = settings.mongo
    _client = AsyncIOMotorClient(
        _mongo_config.uri,
        serverSelectionTimeoutMS=_mongo_config.server_selection_timeout_ms,
        tz_aware=True,
    )
    logger.info(
        f"MongoDB client created (url={sanitize_mongodb_url(_mongo_config.uri)}, "
        f"database={_mongo_config.database})"
    )
    return _client


async def close_db() -> None:
    """Close MongoDB connection."""
    global _client, _mongo_config
    if _client is not None:
        _client.close()
        _client = None
        _mongo_config = None
        logger.info("MongoDB connection closed")


def get_client() -> AsyncIOMotorClient:
    """Get the MongoDB client instance."""
    if _client is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _client


def get_database() -> AsyncIOMotorDatabase:
    """Get the configured MongoDB database."""
    client = get_client()
    return client[_mongo_config.database]


def get_employee_collection() -> AsyncIOMotorCollection:
    """Get the employee collection handle."""
    return get_database()[_mongo_config.collection]


async def check_db_connection() -> bool:
    """Check if MongoDB connection is healthy."""
    if _client is None:
        return False

    try:
        await _client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


def get_db_info() -> dict:
    """Get database connection information and status."""
    mongo = _mongo_config or get_settings().mongo

    return {
        "status": "connected" if _client is not None else "disconnected",
        "url": sanitize_mongodb_url(mongo.uri),
        "database": mongo.database,
        "collection": mongo.collection,
    }


def sanitize_mongodb_url(url: str) -> str:
    """Hide password in MongoDB URL for safe logging."""
    if "@" not in url or "://" not in url:
        return url

    protocol, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        username = credentials.split(":", 1)[0]
        return f"{protocol}://{username}:***@{host}"
    return url
