from .exceptions import (
    ConflictError,
    EmployeeNotFoundError,
    EmployeeRegistryError,
    InvalidArgumentError,
    StorageUnavailableError,
)
from .models import (
    BulkCreateResult,
    BulkUpdateResult,
    CreateResult,
    DeleteResult,
    Employee,
    EmployeeCreate,
    EmployeePage,
    EmployeeQuery,
    EmployeeUpdate,
    InsertOutcome,
    Pagination,
    UpdateResult,
    WriteFailure,
)
from .query_builder import QuerySpec, build_query, total_pages
from .repository import EmployeeRepository, parse_object_id

__all__ = [
    "EmployeeRepository",
    "parse_object_id",
    "QuerySpec",
    "build_query",
    "total_pages",
    "EmployeeRegistryError",
    "EmployeeNotFoundError",
    "InvalidArgumentError",
    "ConflictError",
    "StorageUnavailableError",
    "BulkCreateResult",
    "BulkUpdateResult",
    "CreateResult",
    "DeleteResult",
    "Employee",
    "EmployeeCreate",
    "EmployeePage",
    "EmployeeQuery",
    "EmployeeUpdate",
    "InsertOutcome",
    "Pagination",
    "UpdateResult",
    "WriteFailure",
]
