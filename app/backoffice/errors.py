from __future__ import annotations

import enum
import time


class ErrorKind(str, enum.Enum):
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    DATA_INTEGRITY = "data_integrity"
    INVALID_ARGUMENT = "invalid_argument"
    FILE = "file"


class DomainError(Exception):
    """Base for errors the API layer turns into JSON responses."""

    kind: ErrorKind
    status_code: int = 500
    title: str = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthorizationError(DomainError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403
    title = "Forbidden"


class ObjectNotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    title = "Not found"

    def __init__(self, message: str, *, entity_id: object = None, entity_type: str | None = None) -> None:
        super().__init__(message)
        self.entity_id = entity_id
        self.entity_type = entity_type

    @classmethod
    def for_entity(cls, entity_type: str, entity_id: object) -> "ObjectNotFoundError":
        return cls(
            f"Object not found! Id: {entity_id}, Type: {entity_type}",
            entity_id=entity_id,
            entity_type=entity_type,
        )


class DataIntegrityError(DomainError):
    """Store rejected a write; the original exception is kept as __cause__."""

    kind = ErrorKind.DATA_INTEGRITY
    status_code = 400
    title = "Data integrity"


class InvalidArgumentError(DomainError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT
    status_code = 400
    title = "Invalid argument"


class FileError(DomainError):
    kind = ErrorKind.FILE
    status_code = 400
    title = "File error"


def error_body(status: int, error: str, message: str, path: str) -> dict:
    """JSON body shared by every error response."""
    return {
        "timestamp": int(time.time() * 1000),
        "status": status,
        "error": error,
        "message": message,
        "path": path,
    }
