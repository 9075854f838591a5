"""
Centralized error handlers for FastAPI.

Every failure escaping a route is classified once and rendered as an
error envelope. No stack traces or internal details are exposed to
clients; unexpected errors are logged and answered with a generic 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.infrastructure.persistence_errors import PersistenceError
from app.shared.errors.classifier import classify, not_found, respond
from app.shared.errors.envelope import NOT_FOUND, HttpError

logger = logging.getLogger(__name__)

CLASSIFIED_ERRORS = (
    RequestValidationError,
    PydanticValidationError,
    HttpError,
    PersistenceError,
    IntegrityError,
)

# Raised by the router when a path or method matches no route
UNMATCHED_ROUTE_STATUSES = (404, 405)


async def handle_classified(_request: Request, exc: Exception) -> JSONResponse:
    """Render a typed failure through the classifier."""
    envelope = classify(exc)
    if envelope.status >= 500:
        logger.error("Request failed: %s %s", envelope.kind.value, envelope.message)
    else:
        logger.info("Request rejected: %s %s", envelope.kind.value, envelope.message)
    return respond(envelope)


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP exceptions.

    A request matching no route, by path or by method, gets the fixed
    not-found envelope. Any other HTTPException is classified and keeps
    the headers it carries.
    """
    if exc.status_code in UNMATCHED_ROUTE_STATUSES:
        return respond(NOT_FOUND)
    envelope = classify(exc)
    logger.info("Request rejected: %s %s", envelope.kind.value, envelope.message)
    return respond(envelope, headers=exc.headers)


class ErrorClassifierMiddleware(BaseHTTPMiddleware):
    """Terminal handler for failures no exception handler claimed.

    Installed innermost among user middleware so the response it renders
    still passes through request logging and security headers.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return respond(classify(exc))


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    for exc_class in CLASSIFIED_ERRORS:
        app.add_exception_handler(exc_class, handle_classified)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)

    app.add_middleware(ErrorClassifierMiddleware)
    app.router.default = not_found
