"""Client facades for the NextRows service.

``NextrowsClient`` blocks the calling thread for each call and
``AsyncNextrowsClient`` suspends the calling task. Both own exactly one
transport binding for their lifetime and hold no per-call state, so calls on
one instance are independent of each other.

Example:
    with NextrowsClient("sk-...") as client:
        result = client.extract(
            ExtractRequest(type="url", data=["https://example.com/products"])
        )
        print(result.data)
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Self, TypeVar

import httpx
import pydantic

from nextrows._version import __version__
from nextrows.config import ClientConfiguration, load_configuration
from nextrows.endpoints import (
    EXTRACT,
    GET_CREDITS,
    ISSUE_ACCESS_TOKEN,
    RUN_APP_JSON,
    Endpoint,
)
from nextrows.exceptions import ConfigurationError, NextrowsError, TransportError
from nextrows.models import (
    CreditsResponse,
    ExtractResponse,
    RunAppResponse,
    TokenResponse,
)
from nextrows.transport import AsyncTransportBinding, TransportBinding
from nextrows.types import (
    ExtractRequest,
    Failure,
    Result,
    RunAppRequest,
    TokenRequest,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _expect(request: Any, expected: type[T], method: str) -> T:
    if not isinstance(request, expected):
        raise TypeError(
            f"{method}() expects {expected.__name__}, got {type(request).__name__}"
        )
    return request


class _ClientBase:
    """Configuration and credential handling shared by both facades."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        config: ClientConfiguration | None = None,
        base_url: str | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        self._config = load_configuration(
            config, base_url=base_url, timeout_ms=timeout_ms
        )
        # An empty or missing key is accepted; the service answers 401.
        self._api_key = api_key if api_key is not None else self._config.api_key

    @property
    def config(self) -> ClientConfiguration:
        return self._config

    @property
    def has_credential(self) -> bool:
        return bool(self._api_key)

    def token_request(self, request: TokenRequest | None = None) -> TokenRequest:
        """Return ``request`` or build one from the configured app credentials."""
        if request is not None:
            return _expect(request, TokenRequest, "issue_access_token")
        if self._config.app_key is None or self._config.app_secret is None:
            raise ConfigurationError(
                "app_key and app_secret are required to issue an access token. "
                "Pass a TokenRequest or set NEXTROWS_APP_KEY and NEXTROWS_APP_SECRET."
            )
        return TokenRequest(
            app_key=self._config.app_key,
            app_secret=self._config.app_secret,
            mock=self._config.use_mock_server,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(base_url={self._config.base_url!r}, "
            f"timeout_ms={self._config.timeout_ms}, "
            f"api_key={'***' if self._api_key else None})"
        )


class NextrowsClient(_ClientBase):
    """Blocking client for the NextRows API."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        config: ClientConfiguration | None = None,
        base_url: str | None = None,
        timeout_ms: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            api_key, config=config, base_url=base_url, timeout_ms=timeout_ms
        )
        self._binding = TransportBinding(
            self._config, self._api_key, version=__version__, transport=transport
        )

    @classmethod
    def from_env(cls, env_file: str | None = None, **kwargs: Any) -> Self:
        """Create a client from ``NEXTROWS_*`` variables and an optional .env file."""
        return cls(config=load_configuration(env_file=env_file), **kwargs)

    def call[TRequest, TResponse: pydantic.BaseModel](
        self, endpoint: Endpoint[TRequest, TResponse], request: TRequest
    ) -> Result[TResponse, NextrowsError]:
        """Run an endpoint and return Success or Failure instead of raising."""
        api_call = endpoint.build(request, self._config)
        try:
            raw = self._binding.send(api_call)
        except TransportError as e:
            return Failure(e)
        result = endpoint.decode(raw)
        if isinstance(result, Failure):
            logger.debug("%s failed: %s", endpoint.name, type(result.error).__name__)
        return result

    def extract(self, request: ExtractRequest) -> ExtractResponse:
        """Extract structured data from URLs or text content.

        Raises:
            APIError: The service rejected the request (e.g. 401, 402).
            TransportError: The request did not complete.
            DecodingError: The response body had an unexpected shape.
        """
        request = _expect(request, ExtractRequest, "extract")
        return self.call(EXTRACT, request).unwrap()

    def run_app_json(self, request: RunAppRequest) -> RunAppResponse:
        """Run a published app and return its tabular JSON output."""
        request = _expect(request, RunAppRequest, "run_app_json")
        return self.call(RUN_APP_JSON, request).unwrap()

    def get_credits(self) -> CreditsResponse:
        """Return the account's credit balance."""
        return self.call(GET_CREDITS, None).unwrap()

    def issue_access_token(self, request: TokenRequest | None = None) -> TokenResponse:
        """Issue an OAuth2 access token with the client-credentials grant.

        Without ``request`` the app key, secret and mock flag come from the
        client configuration.
        """
        return self.call(ISSUE_ACCESS_TOKEN, self.token_request(request)).unwrap()

    def close(self) -> None:
        self._binding.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncNextrowsClient(_ClientBase):
    """Asyncio client for the NextRows API."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        config: ClientConfiguration | None = None,
        base_url: str | None = None,
        timeout_ms: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            api_key, config=config, base_url=base_url, timeout_ms=timeout_ms
        )
        self._binding = AsyncTransportBinding(
            self._config, self._api_key, version=__version__, transport=transport
        )

    @classmethod
    def from_env(cls, env_file: str | None = None, **kwargs: Any) -> Self:
        """Create a client from ``NEXTROWS_*`` variables and an optional .env file."""
        return cls(config=load_configuration(env_file=env_file), **kwargs)

    async def call[TRequest, TResponse: pydantic.BaseModel](
        self, endpoint: Endpoint[TRequest, TResponse], request: TRequest
    ) -> Result[TResponse, NextrowsError]:
        """Run an endpoint and return Success or Failure instead of raising."""
        api_call = endpoint.build(request, self._config)
        try:
            raw = await self._binding.send(api_call)
        except TransportError as e:
            return Failure(e)
        result = endpoint.decode(raw)
        if isinstance(result, Failure):
            logger.debug("%s failed: %s", endpoint.name, type(result.error).__name__)
        return result

    async def extract(self, request: ExtractRequest) -> ExtractResponse:
        """Extract structured data from URLs or text content."""
        request = _expect(request, ExtractRequest, "extract")
        return (await self.call(EXTRACT, request)).unwrap()

    async def run_app_json(self, request: RunAppRequest) -> RunAppResponse:
        request = _expect(request, RunAppRequest, "run_app_json")
        return (await self.call(RUN_APP_JSON, request)).unwrap()

    async def get_credits(self) -> CreditsResponse:
        return (await self.call(GET_CREDITS, None)).unwrap()

    async def issue_access_token(
        self, request: TokenRequest | None = None
    ) -> TokenResponse:
        return (
            await self.call(ISSUE_ACCESS_TOKEN, self.token_request(request))
        ).unwrap()

    async def aclose(self) -> None:
        await self._binding.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
