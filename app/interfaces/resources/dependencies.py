"""
Dependency injection for the resources routes.

Provides FastAPI dependency functions that wire the request-scoped
database session into the repository.
"""

from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.infrastructure.resources.repository import ResourceRepository


def get_session(request: Request) -> Iterator[Session]:
    """Yield a session from the application's Database, closed after the request."""
    yield from request.app.state.database.sessions()


def get_resource_repository(
    session: Session = Depends(get_session),
) -> ResourceRepository:
    """Build ResourceRepository bound to the request's session."""
    return ResourceRepository(session)
