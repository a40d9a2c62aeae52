import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Log request start, end and duration at DEBUG."""

    def __init__(self, app, logger_name: str = "overlaptime.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        self._logger.debug("http.request start method=%s path=%s", method, path)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            self._logger.warning(
                "http.request error method=%s path=%s dur_ms=%d err=%r",
                method, path, (time.perf_counter() - start) * 1000, e,
            )
            raise
        self._logger.debug(
            "http.request end method=%s path=%s status=%s dur_ms=%d",
            method, path, response.status_code, (time.perf_counter() - start) * 1000,
        )
        return response
