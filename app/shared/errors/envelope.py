"""
Error envelope types.

An ErrorEnvelope is the normalized form of any failure that escapes
request processing. The wire shape is fixed per kind; see ``to_body``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Closed set of error kinds. Values are the wire ``error`` field."""

    VALIDATION = "ValidationError"
    HTTP = "HttpError"
    PERSISTENCE_VALIDATION = "PersistenceValidationError"
    PERSISTENCE_UNIQUE = "PersistenceUniqueConstraintError"
    NOT_FOUND = "NotFound"
    INTERNAL = "InternalServerError"


INTERNAL_MESSAGE = "Something went wrong"
VALIDATION_MESSAGE = "Invalid request"
NOT_FOUND_MESSAGE = "Route not found"


class HttpError(Exception):
    """Application error carrying an explicit HTTP status.

    Raise this from business code instead of building a response.
    """

    def __init__(self, status: int, message: str, details: Any = None) -> None:
        self.status = status
        self.message = message
        self.details = details
        super().__init__(message)


@dataclass(frozen=True)
class ErrorEnvelope:
    """Normalized failure ready to be rendered.

    Attributes:
        kind: The selected error kind.
        status: HTTP status code.
        message: Human-readable message, safe to show to callers.
        details: Structured payload (issues, field errors) or None.
    """

    kind: ErrorKind
    status: int
    message: str
    details: Optional[Any] = None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind.value, "message": self.message}
        if self.kind is ErrorKind.VALIDATION:
            body["issues"] = self.details if self.details is not None else []
        elif self.details is not None and self.kind not in (
            ErrorKind.INTERNAL,
            ErrorKind.NOT_FOUND,
        ):
            body["details"] = self.details
        return body


INTERNAL_ERROR = ErrorEnvelope(ErrorKind.INTERNAL, 500, INTERNAL_MESSAGE)
NOT_FOUND = ErrorEnvelope(ErrorKind.NOT_FOUND, 404, NOT_FOUND_MESSAGE)
