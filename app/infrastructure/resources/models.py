"""
ORM model for the resources table.

Field validators run when attributes are assigned and raise
PersistenceValidationError, so invalid rows never reach the database.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.infrastructure.database import Base
from app.infrastructure.persistence_errors import PersistenceValidationError

RESOURCE_STATUSES = ("active", "archived")
NAME_MAX_LEN = 200
DESCRIPTION_MAX_LEN = 2000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Resource(Base):
    """A named resource with a lifecycle status."""

    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LEN), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(DESCRIPTION_MAX_LEN))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    @validates("name")
    def _validate_name(self, key: str, value: Optional[str]) -> str:
        if value is None:
            raise PersistenceValidationError.for_field(
                key, value, "notNull", "Resource.name cannot be null"
            )
        if not value.strip():
            raise PersistenceValidationError.for_field(
                key, value, "notEmpty", "Resource.name cannot be empty"
            )
        if len(value) > NAME_MAX_LEN:
            raise PersistenceValidationError.for_field(
                key, value, "len", f"Resource.name must be at most {NAME_MAX_LEN} characters"
            )
        return value

    @validates("status")
    def _validate_status(self, key: str, value: Optional[str]) -> str:
        if value not in RESOURCE_STATUSES:
            raise PersistenceValidationError.for_field(
                key, value, "isIn", f"Resource.status must be one of {', '.join(RESOURCE_STATUSES)}"
            )
        return value
