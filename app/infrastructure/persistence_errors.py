"""
Persistence-layer errors.

Raised by ORM field validators and by repositories when the database
rejects a write. They are mapped to HTTP responses by the central
error classifier; repositories never build responses themselves.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError


@dataclass(frozen=True)
class FieldIssue:
    """One field-level problem reported by the persistence layer."""

    message: str
    path: str
    value: Any = None
    rule: Optional[str] = None


class PersistenceError(Exception):
    """Base error for persistence failures carrying field issues."""

    def __init__(self, message: str, issues: list[FieldIssue]) -> None:
        self.message = message
        self.issues = list(issues)
        super().__init__(self.message)


class PersistenceValidationError(PersistenceError):
    """Raised when a model field fails a persistence-level validator."""

    @classmethod
    def for_field(
        cls, path: str, value: Any, rule: str, message: str
    ) -> "PersistenceValidationError":
        issue = FieldIssue(message=message, path=path, value=value, rule=rule)
        return cls(f"Validation error: {message}", [issue])


class PersistenceUniqueConstraintError(PersistenceError):
    """Raised when a write violates a uniqueness constraint."""


# sqlite: "UNIQUE constraint failed: resources.name, resources.status"
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<columns>.+)")
# postgres: 'Key (name)=(foo) already exists.'
_POSTGRES_UNIQUE = re.compile(r"Key \((?P<columns>[^)]+)\)=\((?P<values>[^)]*)\) already exists")


def translate_integrity_error(
    exc: IntegrityError, values: Optional[dict[str, Any]] = None
) -> Optional[PersistenceUniqueConstraintError]:
    """Convert a uniqueness IntegrityError into a PersistenceUniqueConstraintError.

    Args:
        exc: The error raised by SQLAlchemy.
        values: Attempted column values, used to report the offending value.

    Returns:
        The translated error, or None when ``exc`` is not a uniqueness violation.
    """
    text = str(exc.orig) if exc.orig is not None else str(exc)
    values = values or {}

    match = _SQLITE_UNIQUE.search(text)
    if match:
        columns = [c.strip().split(".")[-1] for c in match.group("columns").split(",")]
        reported = {c: values.get(c) for c in columns}
    else:
        match = _POSTGRES_UNIQUE.search(text)
        if not match:
            return None
        columns = [c.strip() for c in match.group("columns").split(",")]
        raw_values = [v.strip() for v in match.group("values").split(",")]
        reported = {c: values.get(c, v) for c, v in zip(columns, raw_values)}

    issues = [
        FieldIssue(message=f"{column} must be unique", path=column, value=value)
        for column, value in reported.items()
    ]
    return PersistenceUniqueConstraintError("Validation error", issues)
