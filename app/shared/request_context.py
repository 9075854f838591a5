"""
Per-request correlation context.

Every inbound HTTP request gets a fresh correlation id that is visible to
any code running on behalf of that request (awaited I/O, spawned tasks,
threadpool calls, background tasks) without being passed explicitly.
Isolation between interleaved requests comes from ``contextvars``: each
asyncio task and each threadpool call runs in its own copy of the context.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Iterator, Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _new_request_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class RequestContext:
    """Correlation state for one request.

    Attributes:
        request_id: Opaque unique id, generated at request entry.
        start_time: Monotonic timestamp (``time.perf_counter``) at entry.
    """

    request_id: str = field(default_factory=_new_request_id)
    start_time: float = field(default_factory=time.perf_counter)

    def elapsed_ms(self) -> float:
        """Milliseconds since the context was created, never negative."""
        return max((time.perf_counter() - self.start_time) * 1000.0, 0.0)


_request_context_var: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def current_context() -> Optional[RequestContext]:
    """Return the ambient request context, or None outside any request."""
    return _request_context_var.get()


def current_request_id() -> Optional[str]:
    """Return the ambient request id, or None outside any request."""
    context = _request_context_var.get()
    return context.request_id if context is not None else None


@contextmanager
def request_scope() -> Iterator[RequestContext]:
    """Bind a fresh RequestContext for the dynamic extent of the block."""
    context = RequestContext()
    token = _request_context_var.set(context)
    try:
        yield context
    finally:
        _request_context_var.reset(token)


def format_completion(method: str, path: str, status: int, duration_ms: float) -> str:
    return (
        f"Completed request: {method} {path} "
        f"status={status} duration={max(duration_ms, 0.0):.2f}ms"
    )


def _request_target(scope: Scope) -> str:
    path = scope.get("root_path", "") + scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


class RequestContextMiddleware:
    """ASGI middleware that opens a request scope around each HTTP request.

    Logs ``Incoming request`` on entry and ``Completed request`` once the
    final body chunk has been handed to the server, so the duration covers
    the whole handler chain including asynchronous handlers.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        target = _request_target(scope)

        with request_scope() as context:
            scope.setdefault("state", {})["request_id"] = context.request_id
            logger.info("Incoming request: %s %s", method, target)

            status_code = 500
            completed = False

            async def send_wrapper(message: Message) -> None:
                nonlocal status_code, completed
                if message["type"] == "http.response.start":
                    status_code = message["status"]
                    headers = list(message.get("headers", []))
                    headers.append(
                        (REQUEST_ID_HEADER.lower().encode("latin-1"),
                         context.request_id.encode("latin-1"))
                    )
                    message = {**message, "headers": headers}
                await send(message)
                if (
                    message["type"] == "http.response.body"
                    and not message.get("more_body", False)
                    and not completed
                ):
                    completed = True
                    logger.info(
                        format_completion(
                            method, target, status_code, context.elapsed_ms()
                        )
                    )

            await self.app(scope, receive, send_wrapper)
