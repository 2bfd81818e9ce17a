"""Error kinds raised by the progress services.

Services never build HTTP responses.  They raise a ``ServiceError`` carrying
an ``ErrorKind``; ``coursetrack.api.errors`` turns the kind into a status
code.  Notification failures are not part of this taxonomy: they are
caught inside the notifier and never reach a caller.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    CONFLICT = "conflict"
    VALIDATION = "validation"


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.INVALID_STATE

    def __init__(self, message: str, *, fields: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = fields or {}


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(ServiceError):
    kind = ErrorKind.FORBIDDEN


class InvalidStateError(ServiceError):
    kind = ErrorKind.INVALID_STATE


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


class ValidationFailure(ServiceError):
    kind = ErrorKind.VALIDATION
