from typing import Optional, Dict, Any
import uuid

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from auralis.core.errors import AuralisError
from auralis.core.logging import console_logger
from auralis.core.config import settings


def _request_id(request: Request) -> str:
    request_id: Optional[str] = getattr(getattr(request, "state", None), "request_id", None)
    if not request_id:
        # Ensure we always have a request id, even if request logging is disabled
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def _envelope(status_code: int, payload: Dict[str, Any], request_id: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload, headers={"X-Request-ID": request_id})


async def auralis_error_handler(request: Request, exc: AuralisError) -> JSONResponse:
    request_id = _request_id(request)
    logger = console_logger.bind(
        request_id=request_id,
        method=request.method,
        path=str(request.url.path),
        status_code=exc.status_code,
        error_type=exc.__class__.__name__,
    )
    if exc.status_code >= 500:
        logger.error("api_error", error=exc.error, details=exc.details)
    else:
        logger.warning("api_error", error=exc.error, details=exc.details)
    return _envelope(exc.status_code, exc.to_payload(request_id), request_id)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    request_id = _request_id(request)
    console_logger.bind(
        request_id=request_id,
        method=request.method,
        path=str(request.url.path),
        status_code=exc.status_code,
    ).warning("http_exception", detail=str(exc.detail))

    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    payload: Dict[str, Any] = {"error": detail, "details": str(exc.detail), "requestId": request_id}
    response = _envelope(exc.status_code, payload, request_id)
    for key, value in (exc.headers or {}).items():
        response.headers[key] = value
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = _request_id(request)
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    details = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    console_logger.bind(request_id=request_id, path=str(request.url.path)).warning("request_validation_failed", details=details)
    payload: Dict[str, Any] = {"error": "Invalid request", "details": details, "requestId": request_id}
    return _envelope(400, payload, request_id)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)

        try:
            return await call_next(request)

        except AuralisError as exc:
            return await auralis_error_handler(request, exc)

        except Exception as exc:
            logger = console_logger.bind(
                request_id=request_id,
                method=request.method,
                path=str(request.url.path),
            )
            logger.error("unhandled_exception", exc_info=True)

            payload: Dict[str, Any] = {
                "error": "Internal server error",
                "details": "An unexpected error occurred",
                "requestId": request_id,
            }
            # In development, provide more diagnostics in the response
            if settings.DEBUG:
                payload.update({
                    "details": str(exc) or payload["details"],
                    "type": exc.__class__.__name__,
                })
            return _envelope(500, payload, request_id)
