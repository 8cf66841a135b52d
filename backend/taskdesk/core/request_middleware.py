import logging
import time
import uuid

from taskdesk.core.logger import logger


def generate_request_id() -> str:
    return str(uuid.uuid4())


def _level_for(status_code) -> int:
    if status_code is None or status_code >= 500:
        return logging.ERROR
    if status_code in (401, 403):
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware:
    """
    ASGI middleware tagging each request with an X-Request-ID.

    The actor guard stores the resolved caller on ``request.state.actor_id``;
    the completion record carries it as ``user_id`` so a denied or failed
    call can be traced to who made it. Auth denials log at WARNING.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        request_id = generate_request_id()
        scope["request_id"] = request_id
        state = scope.setdefault("state", {})
        state["request_id"] = request_id

        method = scope.get("method", "")
        path = scope.get("path", "")
        start = time.perf_counter()
        status_code = None

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                message["headers"] = list(message.get("headers", [])) + [
                    (b"x-request-id", request_id.encode("utf-8"))
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.log(
                _level_for(status_code),
                "Request completed",
                extra={
                    "request_id": request_id,
                    "user_id": state.get("actor_id"),
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
