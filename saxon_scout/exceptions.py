"""Custom exceptions for Saxon Scout."""

from typing import Any, Optional

import httpx


class SaxonScoutError(Exception):
    """Base exception for all Saxon Scout errors."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class APIError(SaxonScoutError):
    """Normalized error raised by the API client.

    Every transport failure is converted into this single shape before it
    reaches callers.

    Attributes:
        code: ``HTTP_<status>``, ``NETWORK_ERROR`` or ``UNKNOWN_ERROR``
        message: Human readable message
        details: Response body, request URL, or None
    """

    def __init__(self, code: str, message: str, details: Any = None) -> None:
        super().__init__(message, code=code)
        self.details = details

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status for ``HTTP_*`` errors, otherwise None."""
        if self.code and self.code.startswith("HTTP_"):
            try:
                return int(self.code[5:])
            except ValueError:
                return None
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class CacheFault(SaxonScoutError):
    """A cache tier failed internally.

    Cache faults are recovered inside the tier and never reach callers of
    ``get``/``set``.
    """

    def __init__(self, message: str, *, key: Optional[str] = None) -> None:
        super().__init__(message, code=type(self).__name__)
        self.key = key


class StorageError(CacheFault):
    """The underlying key-value store rejected an operation."""


class StorageFull(StorageError):
    """The store has no room for the entry."""


class SerializationError(CacheFault):
    """An entry could not be encoded for storage."""


class DeserializationError(CacheFault):
    """A stored entry could not be decoded."""


NETWORK_ERROR = "NETWORK_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def normalize_error(exc: BaseException) -> APIError:
    """Map any exception raised while performing a request to an APIError.

    Args:
        exc: Exception raised by httpx or while decoding the response

    Returns:
        Normalized API error
    """
    if isinstance(exc, APIError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        body = _response_body(exc.response)
        message = None
        if isinstance(body, dict):
            message = body.get("message")
        return APIError(
            f"HTTP_{exc.response.status_code}",
            str(message) if message else str(exc),
            body,
        )

    # Raised before anything went on the wire.
    if isinstance(exc, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return APIError(UNKNOWN_ERROR, str(exc) or "An unknown error occurred")

    if isinstance(exc, httpx.TransportError):
        url = None
        try:
            url = str(exc.request.url)
        except RuntimeError:
            pass
        return APIError(NETWORK_ERROR, "Network request failed", {"url": url})

    return APIError(UNKNOWN_ERROR, str(exc) or "An unknown error occurred")
