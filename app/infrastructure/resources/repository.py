"""
Adapter: Resource persistence.

CRUD and filtered listing for the resources table. Uniqueness
violations reported by the database are translated into
PersistenceUniqueConstraintError; other failures propagate as-is.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.infrastructure.persistence_errors import translate_integrity_error
from app.infrastructure.resources.models import Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceFilter:
    """Listing filters. None means "no constraint"."""

    status: Optional[str] = None
    q: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    limit: int = 50
    offset: int = 0


class ResourceRepository:
    """Concrete adapter for resource persistence.

    Args:
        session: SQLAlchemy session scoped to the current request.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _commit(self, values: dict[str, Any]) -> None:
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            translated = translate_integrity_error(exc, values)
            if translated is not None:
                raise translated from exc
            raise

    def create(self, name: str, description: Optional[str], status: str) -> Resource:
        resource = Resource(name=name, description=description, status=status)
        self._session.add(resource)
        self._commit({"name": name, "description": description, "status": status})
        logger.info("Created resource id=%s", resource.id)
        return resource

    def get(self, resource_id: int) -> Optional[Resource]:
        return self._session.get(Resource, resource_id)

    def list(self, filters: ResourceFilter) -> tuple[list[Resource], int]:
        """Return one page of resources (newest first) and the total match count."""
        conditions = []
        if filters.status:
            conditions.append(Resource.status == filters.status)
        if filters.q:
            conditions.append(Resource.name.like(f"%{filters.q}%"))
        if filters.created_from:
            conditions.append(Resource.created_at >= filters.created_from)
        if filters.created_to:
            conditions.append(Resource.created_at <= filters.created_to)

        count = self._session.scalar(
            select(func.count()).select_from(Resource).where(*conditions)
        )
        rows = self._session.scalars(
            select(Resource)
            .where(*conditions)
            .order_by(Resource.created_at.desc(), Resource.id.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        ).all()
        return list(rows), int(count or 0)

    def update(self, resource: Resource, changes: dict[str, Any]) -> Resource:
        for field, value in changes.items():
            setattr(resource, field, value)
        self._commit(changes)
        logger.info("Updated resource id=%s fields=%s", resource.id, sorted(changes))
        return resource

    def delete(self, resource_id: int) -> bool:
        resource = self._session.get(Resource, resource_id)
        if resource is None:
            return False
        self._session.delete(resource)
        self._commit({})
        logger.info("Deleted resource id=%s", resource_id)
        return True
