import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from auralis.core.config import settings
from auralis.core.logging import console_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and logs one ``request.end`` event per request.

    Health probes and vendor webhooks are frequent, so they are logged at
    debug level unless they fail.
    """

    LOGGING_ENABLED = True
    QUIET_PREFIXES = (f"{settings.API_V1_STR}/health", f"{settings.API_V1_STR}/webhooks")

    def _request_id(self, request: Request) -> str:
        request_id: Optional[str] = (
            request.headers.get("X-Request-ID")
            or getattr(request.state, "request_id", None)
        )
        return request_id or str(uuid.uuid4())

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = self._request_id(request)
        request.state.request_id = request_id

        if not self.LOGGING_ENABLED:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        start = time.perf_counter()
        path = str(request.url.path)

        client_ip: Optional[str] = request.headers.get("x-forwarded-for")
        if not client_ip and request.client:
            client_ip = request.client.host

        logger = console_logger.bind(
            request_id=request_id,
            method=request.method,
            path=path,
            query=request.url.query or None,
            client_ip=client_ip,
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.error("request.end", status_code=500, duration_ms=_elapsed_ms(start))
            raise

        response.headers["X-Request-ID"] = request_id

        status_code = response.status_code
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        elif path.startswith(self.QUIET_PREFIXES):
            log = logger.debug
        else:
            log = logger.info
        log("request.end", status_code=status_code, duration_ms=_elapsed_ms(start))
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
