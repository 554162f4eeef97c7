"""Exceptions raised by the NextRows client.

Every failure a call can produce is one of three kinds so callers can branch
on it: ``TransportError`` (the request never got a response), ``APIError``
(the service answered with a non-2xx status) and ``DecodingError`` (a 2xx body
that does not have the expected shape).
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class NextrowsError(Exception):
    """Base exception for all NextRows client errors"""  # noqa: D415


class ConfigurationError(NextrowsError):
    """Raised when client configuration is invalid or incomplete"""  # noqa: D415


class ValidationError(NextrowsError, ValueError):
    """Raised when a request value violates a structural invariant"""  # noqa: D415


class TransportErrorKind(str, Enum):
    """Network failure categories reported by the HTTP layer."""

    TIMEOUT = "timeout"
    CONNECT = "connect"
    NETWORK = "network"


class TransportError(NextrowsError):
    """Raised when the HTTP call fails before a response arrives.

    The originating ``httpx`` exception is kept as ``__cause__`` and as
    ``cause``.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: TransportErrorKind = TransportErrorKind.NETWORK,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.cause = cause


class APIError(NextrowsError):
    """Raised when the service responds with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the service.
        body: Parsed JSON error payload, or None when the body was empty or
            not JSON.
        error: The ``error`` field of the payload when present.
        message: The ``message`` field of the payload when present.
    """

    def __init__(
        self,
        status_code: int,
        *,
        body: Any = None,
        error: str | None = None,
        message: str | None = None,
    ) -> None:
        detail = message or error or "no error detail"
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.body = body
        self.error = error
        self.message = message


class DecodingError(NextrowsError):
    """Raised when a successful response body cannot be parsed.

    Attributes:
        content: The raw response text.
        detail: Human readable description of what did not match.
    """

    def __init__(self, detail: str, *, content: str = "") -> None:
        super().__init__(f"Could not decode response: {detail}")
        self.detail = detail
        self.content = content
