class EmployeeRegistryError(Exception):
    """Base exception for employee record operations."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class EmployeeNotFoundError(EmployeeRegistryError):
    """No record matched the supplied identifier(s)."""

    status_code = 404


class InvalidArgumentError(EmployeeRegistryError):
    """Malformed request that escaped upstream validation."""

    status_code = 400


class ConflictError(EmployeeRegistryError):
    """Unique constraint (email) violated."""

    status_code = 409


class StorageUnavailableError(EmployeeRegistryError):
    """MongoDB unreachable or timed out. Safe for the caller to retry."""

    status_code = 503
