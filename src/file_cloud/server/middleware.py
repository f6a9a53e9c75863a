import time

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from file_cloud.utils import logging

logger = logging.get_logger(__name__)


class RequestLoggingMiddleware:
    """Log one line per HTTP request with status, sizes, duration and client address."""

    def __init__(self, app: ASGIApp, slow_threshold: float = 1.0) -> None:
        self.app = app
        self.slow_threshold = slow_threshold

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code: int | None = None
        response_size = 0

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, response_size
            if message["type"] == "http.response.start":
                status_code = message["status"]
            elif message["type"] == "http.response.body":
                response_size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            self._log(scope, status_code or 500, response_size, time.perf_counter() - start)

    def _log(self, scope: Scope, status_code: int, response_size: int, duration: float) -> None:
        headers = Headers(scope=scope)
        method = scope["method"]
        path = scope["path"]
        try:
            request_size = max(int(headers.get("content-length", 0)), 0)
        except ValueError:
            request_size = 0

        logger.info(
            "%s %s %d %dB/%dB %.1fms %s",
            method,
            path,
            status_code,
            request_size,
            response_size,
            duration * 1000,
            client_ip(scope, headers),
        )
        if duration > self.slow_threshold:
            logger.warning("[SLOW REQUEST] %s %s took %.2fs", method, path, duration)
        if status_code >= 400:
            logger.warning("[ERROR RESPONSE] %s %s returned %d", method, path, status_code)


def client_ip(scope: Scope, headers: Headers | None = None) -> str:
    if headers is None:
        headers = Headers(scope=scope)
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip
    client = scope.get("client")
    return client[0] if client else ""
