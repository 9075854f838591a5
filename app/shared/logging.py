"""
Logging configuration for the application.

Sets up plain-text logging with a consistent format.
Lines emitted while a request is being handled carry the request's
correlation id as a ``[<request_id>]`` prefix on the message; lines
emitted outside any request are unprefixed.
Logging must not change program behavior.
"""

import logging
import sys
from typing import Optional

from app.shared.request_context import current_request_id

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(request_prefix)s%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handler: Optional[logging.Handler] = None


class RequestContextFilter(logging.Filter):
    """Annotate records with the ambient request id.

    Sets ``record.request_id`` (or None) and ``record.request_prefix``
    (``"[<id>] "`` or ``""``). Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = current_request_id()
        record.request_id = request_id
        record.request_prefix = f"[{request_id}] " if request_id else ""
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure stdout logging for the application.

    Args:
        level: The log level string (DEBUG, INFO, WARNING, ERROR).
    """
    global _handler
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    # Already configured: only adjust the level, keep handlers added since
    if _handler is not None and _handler in root.handlers:
        root.setLevel(log_level)
        return

    _handler = logging.StreamHandler(sys.stdout)
    _handler.addFilter(RequestContextFilter())
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    logging.basicConfig(level=log_level, handlers=[_handler], force=True)

    # Request lines are logged by RequestContextMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
