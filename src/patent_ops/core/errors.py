"""
Error taxonomy and transport-outcome classification for the OPS client.

Every failure surfaced by the client is an `OPSError` tagged with an
`ErrorKind`. The per-kind subclasses let callers write either
``match err.kind`` or ``except RateLimitError``.

`classify_response` and `classify_transport_error` are the only places where
HTTP facts are translated into this taxonomy.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import httpx


class ErrorKind(str, Enum):
    """Closed set of error kinds raised by the client."""

    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    NETWORK = "network"
    API = "api"
    TIMEOUT = "timeout"


class OPSError(Exception):
    """Base error for all OPS client failures."""

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, "
            f"status={self.status!r}, code={self.code!r})"
        )


class AuthenticationError(OPSError):
    """Raised for rejected credentials, expired tokens or missing permissions."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class RateLimitError(OPSError):
    """Raised when OPS answers 429 (fair-use throttling)."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ValidationError(OPSError):
    """
    Raised for invalid caller input or an upstream payload with the wrong shape.

    Attributes:
        violations: Every violation found, as dicts with `field`, `message`
            and `type` keys.
        details: For output validation, the normalized record that failed.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Invalid input",
        violations: Optional[List[Dict[str, str]]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.violations: List[Dict[str, str]] = list(violations or [])

    @property
    def fields(self) -> List[str]:
        """Names of the fields that failed validation."""
        return [violation["field"] for violation in self.violations]


class NetworkError(OPSError):
    """Raised when no response was received (connection failure, timeout)."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network error occurred", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class GenericApiError(OPSError):
    """Raised for any other non-2xx status."""

    kind = ErrorKind.API


class CallTimeoutError(OPSError):
    """Raised when a call, retries included, exceeds its time budget."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Call timed out", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


def _decode_body(body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def _extract_code(body: Any) -> Optional[str]:
    """Read an upstream error code from a JSON body or an OPS fault body."""
    if not isinstance(body, dict):
        return None
    code = body.get("code")
    if code is None:
        fault = body.get("fault")
        if isinstance(fault, dict):
            code = fault.get("code")
            if isinstance(code, dict):
                code = code.get("$")
    return str(code) if code is not None else None


def _parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    if not headers:
        return None
    value = headers.get("retry-after") or headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def classify_response(
    status: int,
    body: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> OPSError:
    """
    Map a non-2xx HTTP response to an error of the client taxonomy.

    Args:
        status: HTTP status code.
        body: Raw response body (text, bytes or already-decoded JSON).
        headers: Optional response headers, used for `Retry-After`.

    Returns:
        The classified error (not raised).
    """
    decoded = _decode_body(body)
    code = _extract_code(decoded)
    if status == 401:
        return AuthenticationError(
            "Invalid or expired token", status=status, code=code, details=decoded
        )
    if status == 403:
        return AuthenticationError(
            "Insufficient permissions", status=status, code=code, details=decoded
        )
    if status == 429:
        return RateLimitError(
            "Rate limit exceeded",
            retry_after=_parse_retry_after(headers),
            status=status,
            code=code,
            details=decoded,
        )
    if status == 400:
        return ValidationError(
            "Invalid request parameters", status=status, code=code, details=decoded
        )

    return GenericApiError(
        "API request failed",
        status=status,
        code=code,
        details=decoded,
    )


def classify_transport_error(exc: BaseException) -> OPSError:
    """Map a transport failure where no response was received to `NetworkError`."""
    if isinstance(exc, OPSError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return NetworkError(f"Request timeout: {exc}", details=type(exc).__name__)
    return NetworkError(f"Network error occurred: {exc}", details=type(exc).__name__)
