"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class PersistenceError(AppError):
    """Raised when a read or write against the store fails."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"Persistence failure during {operation}: {detail}", code="PERSISTENCE_ERROR")


class ConcurrencyConflict(AppError):
    """Raised when a write is based on a stale version of an item."""

    def __init__(self, item_id: str, expected_version: int, actual_version: Optional[int] = None):
        self.item_id = item_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        found = "a newer write" if actual_version is None else f"version {actual_version}"
        super().__init__(
            f"Item {item_id} was modified concurrently: "
            f"expected version {expected_version}, found {found}",
            code="CONCURRENCY_CONFLICT",
        )
