"""
ASGI middleware binding an operation ID to every HTTP request.
"""

import logging

from .logging import OperationContext, generate_operation_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = b"x-request-id"


class OperationIdMiddleware:
    """
    Reuse the caller's X-Request-ID (or generate one) as the operation ID.

    Usage in api/server.py:
        app.add_middleware(OperationIdMiddleware)

    The ID is echoed back in the X-Request-ID response header and is
    attached to every log line emitted while the request is handled.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        operation_id = None
        for key, value in scope.get("headers", []):
            if key.lower() == REQUEST_ID_HEADER:
                try:
                    operation_id = value.decode("utf-8")
                except UnicodeDecodeError as e:
                    logger.warning("Could not decode X-Request-ID header: %s", e)
                break

        if not operation_id:
            operation_id = generate_operation_id()

        async def send_with_operation_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, operation_id.encode("utf-8")))
                message["headers"] = headers
            await send(message)

        name = f"{scope.get('method', 'HTTP')} {scope.get('path', '')}"
        with OperationContext(name, operation_id=operation_id):
            await self.app(scope, receive, send_with_operation_id)
