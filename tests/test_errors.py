"""
Tests for failure classification and error envelope rendering.

Validates precedence, totality, determinism and the wire shape
of every error kind. No application or database required.
"""

import json
import logging
import sqlite3

import pytest
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.infrastructure.persistence_errors import (
    FieldIssue,
    PersistenceUniqueConstraintError,
    PersistenceValidationError,
    translate_integrity_error,
)
from app.interfaces.resources.schemas import CreateResourceRequest
from app.shared.errors import ErrorEnvelope, ErrorKind, HttpError, classify, respond
from app.shared.errors.envelope import INTERNAL_ERROR
from app.shared.errors.handlers import handle_http_exception


def _body(envelope: ErrorEnvelope) -> dict:
    response = respond(envelope)
    assert response.status_code == envelope.status
    return json.loads(response.body)


def _pydantic_error() -> PydanticValidationError:
    with pytest.raises(PydanticValidationError) as excinfo:
        CreateResourceRequest.model_validate({"name": ""})
    return excinfo.value


def _unique_violation() -> IntegrityError:
    return IntegrityError(
        "INSERT INTO resources (name) VALUES (?)",
        ("alpha",),
        sqlite3.IntegrityError("UNIQUE constraint failed: resources.name"),
    )


class TestRequestValidation:
    """Schema validation failures."""

    def test_pydantic_error_is_validation(self) -> None:
        envelope = classify(_pydantic_error())
        assert envelope.kind is ErrorKind.VALIDATION
        assert envelope.status == 400
        assert envelope.message == "Invalid request"
        assert envelope.details[0]["path"] == ["name"]
        assert envelope.details[0]["code"] == "string_too_short"

    def test_request_validation_error_is_validation(self) -> None:
        exc = RequestValidationError(
            [{"loc": ("body", "name"), "msg": "Field required", "type": "missing"}]
        )
        body = _body(classify(exc))
        assert body == {
            "error": "ValidationError",
            "message": "Invalid request",
            "issues": [{"path": ["body", "name"], "message": "Field required", "code": "missing"}],
        }


class TestHttpError:
    """Application-raised errors."""

    def test_carried_status_message_and_details(self) -> None:
        envelope = classify(HttpError(404, "Resource not found", {"id": 7}))
        assert envelope.kind is ErrorKind.HTTP
        assert _body(envelope) == {
            "error": "HttpError",
            "message": "Resource not found",
            "details": {"id": 7},
        }

    def test_details_omitted_when_absent(self) -> None:
        body = _body(classify(HttpError(400, "No fields provided to update")))
        assert "details" not in body

    def test_invalid_status_falls_back_to_500(self) -> None:
        envelope = classify(HttpError(42, "odd"))
        assert envelope.kind is ErrorKind.HTTP
        assert envelope.status == 500

    def test_starlette_http_exception(self) -> None:
        envelope = classify(StarletteHTTPException(status_code=405))
        assert envelope.kind is ErrorKind.HTTP
        assert envelope.status == 405
        assert envelope.message == "Method Not Allowed"

    @pytest.mark.asyncio
    async def test_framework_exception_keeps_its_headers(self) -> None:
        exc = StarletteHTTPException(
            status_code=429, detail="Too many requests", headers={"Retry-After": "5"}
        )
        response = await handle_http_exception(None, exc)
        assert response.status_code == 429
        assert response.headers["retry-after"] == "5"
        assert json.loads(response.body) == {"error": "HttpError", "message": "Too many requests"}

    @pytest.mark.asyncio
    async def test_unmatched_method_renders_not_found(self) -> None:
        exc = StarletteHTTPException(status_code=405, headers={"Allow": "GET"})
        response = await handle_http_exception(None, exc)
        assert response.status_code == 404
        assert "allow" not in response.headers
        assert json.loads(response.body) == {"error": "NotFound", "message": "Route not found"}


class TestPersistenceErrors:
    """Field validation and uniqueness failures from the persistence layer."""

    def test_field_validation(self) -> None:
        exc = PersistenceValidationError.for_field(
            "status", "deleted", "isIn", "Resource.status must be one of active, archived"
        )
        body = _body(classify(exc))
        assert body["error"] == "PersistenceValidationError"
        assert body["details"] == [
            {
                "message": "Resource.status must be one of active, archived",
                "path": "status",
                "value": "deleted",
                "validatorKey": "isIn",
            }
        ]

    def test_unique_constraint(self) -> None:
        exc = PersistenceUniqueConstraintError(
            "Validation error", [FieldIssue("name must be unique", "name", "alpha")]
        )
        envelope = classify(exc)
        assert envelope.status == 409
        assert _body(envelope)["details"] == [
            {"message": "name must be unique", "path": "name", "value": "alpha"}
        ]

    def test_raw_integrity_error_unique(self) -> None:
        envelope = classify(_unique_violation())
        assert envelope.kind is ErrorKind.PERSISTENCE_UNIQUE
        assert envelope.details[0]["path"] == "name"

    def test_translate_uses_attempted_values(self) -> None:
        translated = translate_integrity_error(_unique_violation(), {"name": "alpha"})
        assert translated is not None
        assert translated.issues == [FieldIssue("name must be unique", "name", "alpha")]

    def test_translate_postgres_message(self) -> None:
        exc = IntegrityError(
            "INSERT", {}, Exception('duplicate key value violates unique constraint "uq"\n'
                                    "DETAIL:  Key (name)=(alpha) already exists.")
        )
        translated = translate_integrity_error(exc)
        assert translated is not None
        assert translated.issues[0].path == "name"
        assert translated.issues[0].value == "alpha"

    def test_other_integrity_errors_are_internal(self) -> None:
        exc = IntegrityError(
            "INSERT", {}, sqlite3.IntegrityError("NOT NULL constraint failed: resources.name")
        )
        assert classify(exc) == INTERNAL_ERROR


class TestInternalErrors:
    """Catch-all behaviour."""

    def test_unknown_error_is_generic(self, caplog) -> None:
        exc = RuntimeError("connection to db-primary:5432 refused")
        with caplog.at_level(logging.ERROR, logger="app.shared.errors.classifier"):
            body = _body(classify(exc))

        assert body == {"error": "InternalServerError", "message": "Something went wrong"}
        assert any(record.exc_info and record.exc_info[1] is exc for record in caplog.records)

    def test_non_exception_base_exception(self) -> None:
        assert classify(KeyboardInterrupt()) == INTERNAL_ERROR

    def test_malformed_failure_is_internal(self) -> None:
        exc = PersistenceValidationError("broken", [])
        exc.issues = None
        assert classify(exc) == INTERNAL_ERROR


class TestPrecedence:
    """Ordering when a failure matches more than one kind."""

    def test_http_error_outranks_persistence_validation(self) -> None:
        class Ambiguous(HttpError, PersistenceValidationError):
            def __init__(self) -> None:
                Exception.__init__(self, "ambiguous")
                self.status = 422
                self.message = "ambiguous"
                self.details = None
                self.issues = []

        envelope = classify(Ambiguous())
        assert envelope.kind is ErrorKind.HTTP
        assert envelope.status == 422

    def test_validation_outranks_persistence_unique(self) -> None:
        class Ambiguous(RequestValidationError, PersistenceUniqueConstraintError):
            def __init__(self) -> None:
                RequestValidationError.__init__(self, [])
                self.message = "ambiguous"
                self.issues = []

        assert classify(Ambiguous()).kind is ErrorKind.VALIDATION

    def test_classification_is_deterministic(self) -> None:
        exc = _pydantic_error()
        assert classify(exc) == classify(exc)


class TestRespond:
    """Rendering never fails."""

    def test_unencodable_details_fall_back(self) -> None:
        body = _body(classify(HttpError(409, "conflict", object())))
        assert body == {"error": "HttpError", "message": "conflict"}

    def test_validation_without_issues_renders_empty_list(self) -> None:
        body = _body(ErrorEnvelope(ErrorKind.VALIDATION, 400, "Invalid request"))
        assert body["issues"] == []
