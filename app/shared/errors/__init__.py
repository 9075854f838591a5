"""
Shared error handling package.

Centralizes failure-to-HTTP mapping so that every error
is rendered as one consistent JSON envelope.
"""

from app.shared.errors.classifier import classify, not_found, respond
from app.shared.errors.envelope import ErrorEnvelope, ErrorKind, HttpError

__all__ = ["ErrorEnvelope", "ErrorKind", "HttpError", "classify", "not_found", "respond"]
