"""
Shared pytest fixtures.

Each API test gets its own application bound to a throwaway SQLite
file. Process signal and fault hooks are disabled so tests never
install handlers on the test runner itself.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.shared.logging import RequestContextFilter


class ListHandler(logging.Handler):
    """Collect records after the request-context filter has annotated them."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []
        self.addFilter(RequestContextFilter())

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self) -> list[str]:
        return [record.getMessage() for record in self.records]


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.sqlite'}",
        environment="dev",
        handle_process_signals=False,
        shutdown_timeout_seconds=1.0,
    )


@pytest.fixture
def test_app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(test_app):
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def captured():
    """Capture records logged under the ``app`` logger hierarchy."""
    handler = ListHandler()
    app_logger = logging.getLogger("app")
    previous_level = app_logger.level
    app_logger.addHandler(handler)
    app_logger.setLevel(logging.DEBUG)
    try:
        yield handler
    finally:
        app_logger.removeHandler(handler)
        app_logger.setLevel(previous_level)
