from __future__ import annotations

from typing import Any


class DocumentServiceError(Exception):
    """Base exception for the document service."""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)


class MalformedInput(DocumentServiceError):
    """Request body is not valid JSON."""

    status_code = 400
    default_code = "MALFORMED_INPUT"


class InvalidIdentifier(DocumentServiceError):
    """Identifier is missing or not path-safe."""

    status_code = 400
    default_code = "INVALID_IDENTIFIER"


class ValidationError(DocumentServiceError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class StructureViolation(ValidationError):
    """
    A document breaks one of the structural limits.

    `reason` is TOO_MANY_KEYS or NESTING_TOO_DEEP; `details` carries the
    actual value and the configured limit.
    """

    TOO_MANY_KEYS = "TOO_MANY_KEYS"
    NESTING_TOO_DEEP = "NESTING_TOO_DEEP"

    def __init__(self, reason: str, message: str, *, actual: int, limit: int):
        super().__init__(message, details={"reason": reason, "actual": actual, "limit": limit})
        self.reason = reason
        self.actual = actual
        self.limit = limit

    @classmethod
    def too_many_keys(cls, count: int, limit: int) -> "StructureViolation":
        return cls(
            cls.TOO_MANY_KEYS,
            f"object has {count} keys, maximum allowed is {limit}",
            actual=count,
            limit=limit,
        )

    @classmethod
    def nesting_too_deep(cls, level: int, limit: int) -> "StructureViolation":
        return cls(
            cls.NESTING_TOO_DEEP,
            f"nesting level exceeds maximum allowed ({limit})",
            actual=level,
            limit=limit,
        )


class NotFoundError(DocumentServiceError):
    status_code = 404
    default_code = "NOT_FOUND"


class NoUndoAvailable(DocumentServiceError):
    status_code = 400
    default_code = "NO_UNDO_AVAILABLE"


class PayloadTooLarge(DocumentServiceError):
    status_code = 413
    default_code = "PAYLOAD_TOO_LARGE"


class StorageError(DocumentServiceError):
    """Disk I/O failure or corrupt stored document."""

    status_code = 500
    default_code = "STORAGE_ERROR"
