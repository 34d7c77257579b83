from .error_logging import (
    ErrorHandlingMiddleware,
    auralis_error_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .request_logging import RequestLoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "auralis_error_handler",
    "http_exception_handler",
    "validation_exception_handler",
]
