from fastapi.responses import JSONResponse

from taskdesk.core.errors import ServiceError
from taskdesk.core.logger import logger


class ExceptionLoggingMiddleware:
    """
    ASGI middleware that logs unhandled exceptions with full stack trace
    and answers with the internal error envelope (no details leaked).
    If the response has already started the exception is re-raised.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        response_started = False

        async def send_wrapper(message):
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception(
                "Unhandled exception in request",
                extra={
                    "request_id": scope.get("request_id"),
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                    "status_code": 500,
                },
            )
            if response_started:
                raise

            error = ServiceError.internal()
            response = JSONResponse(status_code=error.status, content=error.to_payload())
            await response(scope, receive, send)
