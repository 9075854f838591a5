"""
Failure classification.

Maps any exception escaping request processing into exactly one
ErrorEnvelope. Precedence is fixed, first match wins:

1. request schema validation (FastAPI / Pydantic)
2. application HttpError (and Starlette HTTPException)
3. persistence field validation
4. persistence uniqueness violation
5. anything else -> generic internal error, logged but never rendered

Request-level validation outranks persistence-level validation because it
is closer to the caller-visible contract.
"""

import logging
from http import HTTPStatus
from typing import Any, Callable, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send

from app.infrastructure.persistence_errors import (
    PersistenceUniqueConstraintError,
    PersistenceValidationError,
    translate_integrity_error,
)
from app.shared.errors.envelope import (
    INTERNAL_ERROR,
    NOT_FOUND,
    VALIDATION_MESSAGE,
    ErrorEnvelope,
    ErrorKind,
    HttpError,
)

logger = logging.getLogger(__name__)


def _issue_path(loc: Any) -> list[Any]:
    if not isinstance(loc, (list, tuple)):
        loc = [loc]
    return [part if isinstance(part, (str, int)) else str(part) for part in loc]


def _validation(exc: Exception) -> Optional[ErrorEnvelope]:
    if isinstance(exc, PydanticValidationError):
        errors = exc.errors(include_url=False)
    elif isinstance(exc, RequestValidationError):
        errors = exc.errors()
    else:
        return None
    issues = [
        {
            "path": _issue_path(error.get("loc", ())),
            "message": str(error.get("msg", "")),
            "code": str(error.get("type", "")),
        }
        for error in errors
    ]
    return ErrorEnvelope(ErrorKind.VALIDATION, 400, VALIDATION_MESSAGE, issues)


def _valid_status(status: Any) -> int:
    if isinstance(status, int) and not isinstance(status, bool) and 400 <= status <= 599:
        return status
    return 500


def _http(exc: Exception) -> Optional[ErrorEnvelope]:
    if isinstance(exc, HttpError):
        return ErrorEnvelope(
            ErrorKind.HTTP, _valid_status(exc.status), str(exc.message), exc.details
        )
    if isinstance(exc, StarletteHTTPException):
        status = _valid_status(exc.status_code)
        if isinstance(exc.detail, str):
            return ErrorEnvelope(ErrorKind.HTTP, status, exc.detail)
        try:
            phrase = HTTPStatus(status).phrase
        except ValueError:
            phrase = "Error"
        return ErrorEnvelope(ErrorKind.HTTP, status, phrase, exc.detail)
    return None


def _persistence_validation(exc: Exception) -> Optional[ErrorEnvelope]:
    if not isinstance(exc, PersistenceValidationError):
        return None
    details = [
        {
            "message": issue.message,
            "path": issue.path,
            "value": issue.value,
            "validatorKey": issue.rule,
        }
        for issue in exc.issues
    ]
    return ErrorEnvelope(ErrorKind.PERSISTENCE_VALIDATION, 400, exc.message, details)


def _persistence_unique(exc: Exception) -> Optional[ErrorEnvelope]:
    if isinstance(exc, IntegrityError):
        exc = translate_integrity_error(exc)
    if not isinstance(exc, PersistenceUniqueConstraintError):
        return None
    details = [
        {"message": issue.message, "path": issue.path, "value": issue.value}
        for issue in exc.issues
    ]
    return ErrorEnvelope(ErrorKind.PERSISTENCE_UNIQUE, 409, exc.message, details)


_RULES: tuple[Callable[[Exception], Optional[ErrorEnvelope]], ...] = (
    _validation,
    _http,
    _persistence_validation,
    _persistence_unique,
)


def classify(exc: BaseException) -> ErrorEnvelope:
    """Classify a failure into an ErrorEnvelope. Never raises.

    Args:
        exc: Any exception raised while servicing a request.

    Returns:
        The envelope of the first matching rule, or the internal error envelope.
    """
    if isinstance(exc, Exception):
        for rule in _RULES:
            try:
                envelope = rule(exc)
            except Exception:
                logger.exception("Malformed %s while classifying", type(exc).__name__)
                break
            if envelope is not None:
                return envelope

    logger.error("Unhandled error: %r", exc, exc_info=exc)
    return INTERNAL_ERROR


def respond(
    envelope: ErrorEnvelope, headers: Optional[Mapping[str, str]] = None
) -> JSONResponse:
    """Render an envelope as a JSON response. Never raises."""
    try:
        content = jsonable_encoder(envelope.to_body())
        return JSONResponse(status_code=envelope.status, content=content, headers=headers)
    except (TypeError, ValueError):
        logger.warning("Error details for %s are not JSON-encodable", envelope.kind.value)
        return JSONResponse(
            status_code=envelope.status,
            content={"error": envelope.kind.value, "message": envelope.message},
            headers=headers,
        )


async def not_found(scope: Scope, receive: Receive, send: Send) -> None:
    """Fallback ASGI app for requests matching no route."""
    await respond(NOT_FOUND)(scope, receive, send)
