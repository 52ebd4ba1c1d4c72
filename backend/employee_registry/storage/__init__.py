"""Storage layer for Employee Registry - MongoDB client lifecycle and indexes.

This package provides:
- Connection management (Motor client, database and collection handles)
- Health checks and sanitized connection info for logs
- Index creation for the employee collection
"""

from .connection import (
    check_db_connection,
    close_db,
    get_client,
    get_database,
    get_db_info,
    get_employee_collection,
    init_db,
    sanitize_mongodb_url,
)
from .indexes import EMPLOYEE_INDEXES, ensure_employee_indexes

__all__ = [
    # Connection management
    "init_db",
    "close_db",
    "get_client",
    "get_database",
    "get_employee_collection",
    # Utilities
    "check_db_connection",
    "get_db_info",
    "sanitize_mongodb_url",
    # Indexes
    "EMPLOYEE_INDEXES",
    "ensure_employee_indexes",
]
