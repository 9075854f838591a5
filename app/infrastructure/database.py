"""
Database engine and session management.

One Database object per application: it owns the SQLAlchemy engine,
hands out sessions to request handlers and is registered with the
shutdown coordinator so its connection pool is released on exit.
"""

import logging
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Database:
    """Owns the engine and session factory for one database URL.

    Args:
        url: SQLAlchemy database URL.
        echo: Log emitted SQL through the ``sqlalchemy.engine`` logger.
    """

    name = "database"

    def __init__(self, url: str, echo: bool = False) -> None:
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine: Engine = create_engine(
            url, echo=echo, pool_pre_ping=True, connect_args=connect_args
        )
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        """Create missing tables for every registered model."""
        # models must be imported so they are attached to Base.metadata
        from app.infrastructure.resources import models  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info("Database schema synchronized")

    def sessions(self) -> Iterator[Session]:
        """Yield a session and close it afterwards (FastAPI dependency shape)."""
        session = self._sessions()
        try:
            yield session
        finally:
            session.close()

    def shutdown(self) -> None:
        """Dispose of the connection pool."""
        self.engine.dispose()
        logger.info("Database connections closed")
