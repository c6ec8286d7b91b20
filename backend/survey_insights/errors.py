"""Error types shared by the services, the storage adapters and the API layer."""

from typing import Any


class ApiError(Exception):
    """Rendered by the API as ``{"error": message, **extra}`` with ``status_code``."""

    def __init__(self, status_code: int, error: str, **extra: Any):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error, **self.extra}


class StorageError(Exception):
    """Raised by a storage backend when the underlying service fails."""
