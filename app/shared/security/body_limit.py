"""
Request body size limit.

Rejects request bodies larger than the configured maximum with a 413.
A declared Content-Length is checked before the route runs; bodies
without one are counted as they are received.
"""

from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.shared.errors.envelope import HttpError

BODY_TOO_LARGE_MESSAGE = "Request body too large"


def _declared_length(scope: Scope) -> int | None:
    for name, value in scope.get("headers", ()):
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


class RequestSizeLimitMiddleware:
    """Limit the size of HTTP request bodies to ``max_bytes``."""

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = _declared_length(scope)
        if declared is not None and declared > self.max_bytes:
            raise HttpError(413, BODY_TOO_LARGE_MESSAGE)

        received = 0

        async def counting_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    # raised while the route reads the body; FastAPI re-raises HTTPException as is
                    raise StarletteHTTPException(413, BODY_TOO_LARGE_MESSAGE)
            return message

        await self.app(scope, counting_receive, send)
