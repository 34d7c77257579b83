from typing import Any, Dict, List, Optional


class AuralisError(Exception):
    """Base error rendered as the API error envelope.

    Every API route reports failures as::

        {"error": "...", "details": "...", "requestId": "...", **extra}
    """

    status_code: int = 500
    default_error: str = "Internal server error"

    def __init__(
        self,
        error: Optional[str] = None,
        *,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
        **extra: Any,
    ):
        self.error = error or self.default_error
        self.details = details or self.error
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = {k: v for k, v in extra.items() if v is not None}
        super().__init__(self.details)

    def to_payload(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error, "details": self.details}
        payload.update(self.extra)
        if request_id:
            payload["requestId"] = request_id
        return payload


class ConfigurationError(AuralisError):
    status_code = 500
    default_error = "Configuration missing"

    def __init__(self, error: Optional[str] = None, *, missing: Optional[List[str]] = None, **kwargs: Any):
        self.missing = list(missing or [])
        super().__init__(error, **kwargs)


class InvalidRequestError(AuralisError):
    status_code = 400
    default_error = "Invalid request"


class NotFoundError(AuralisError):
    status_code = 404
    default_error = "Not found"


class StorageError(AuralisError):
    status_code = 500
    default_error = "Call record store error"


class VendorError(AuralisError):
    """A vendor API rejected or failed the request; its status code is passed through."""

    status_code = 502
    default_error = "Vendor API error"

    def __init__(
        self,
        error: Optional[str] = None,
        *,
        vendor: str,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        **extra: Any,
    ):
        self.vendor = vendor
        super().__init__(
            error,
            details=details,
            status_code=status_code if status_code and 400 <= status_code < 600 else None,
            vendor=vendor,
            status=status_code,
            **extra,
        )
