"""Typed Python client for the NextRows API."""

import logging

from nextrows._version import __version__
from nextrows.client import AsyncNextrowsClient, NextrowsClient
from nextrows.config import ClientConfiguration
from nextrows.endpoints import (
    EXTRACT,
    GET_CREDITS,
    ISSUE_ACCESS_TOKEN,
    RUN_APP_JSON,
    Endpoint,
)
from nextrows.exceptions import (
    APIError,
    ConfigurationError,
    DecodingError,
    NextrowsError,
    TransportError,
    TransportErrorKind,
    ValidationError,
)
from nextrows.models import (
    CreditsResponse,
    ExtractResponse,
    RunAppData,
    RunAppResponse,
    TokenResponse,
)
from nextrows.types import (
    AppInput,
    ExtractRequest,
    Failure,
    Result,
    RunAppRequest,
    Success,
    TokenRequest,
)

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    "__version__",
    # Clients
    "NextrowsClient",
    "AsyncNextrowsClient",
    "ClientConfiguration",
    # Endpoints
    "Endpoint",
    "EXTRACT",
    "RUN_APP_JSON",
    "GET_CREDITS",
    "ISSUE_ACCESS_TOKEN",
    # Requests
    "ExtractRequest",
    "RunAppRequest",
    "AppInput",
    "TokenRequest",
    # Responses
    "ExtractResponse",
    "RunAppResponse",
    "RunAppData",
    "CreditsResponse",
    "TokenResponse",
    # Result types
    "Result",
    "Success",
    "Failure",
    # Exceptions
    "NextrowsError",
    "APIError",
    "TransportError",
    "TransportErrorKind",
    "DecodingError",
    "ConfigurationError",
    "ValidationError",
]
