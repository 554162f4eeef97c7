"""HTTP transport binding built on httpx.

A binding owns one preconfigured ``httpx`` client (base URL, timeout, default
headers) and exposes a single capability: send an ``APICall`` and return the
``RawResponse``. Network failures are classified into ``TransportError`` with
the original ``httpx`` exception chained; HTTP status codes are not
interpreted here.
"""

from __future__ import annotations

import logging
import time
from types import TracebackType
from typing import Self

import httpx

from nextrows.config import ClientConfiguration
from nextrows.constants import JSON_CONTENT_TYPE, USER_AGENT_PREFIX
from nextrows.exceptions import TransportError, TransportErrorKind
from nextrows.types import APICall, RawResponse

logger = logging.getLogger(__name__)

AUTHORIZATION = "Authorization"


def build_default_headers(
    config: ClientConfiguration, api_key: str | None, *, version: str
) -> httpx.Headers:
    """Merge caller headers with the fixed ones.

    Caller headers go first so ``Authorization`` and ``Content-Type`` always
    win. No ``Authorization`` header is sent without a credential.
    """
    headers = httpx.Headers({"User-Agent": f"{USER_AGENT_PREFIX}/{version}"})
    headers.update(config.headers)
    headers.pop(AUTHORIZATION, None)
    if api_key:
        headers[AUTHORIZATION] = f"Bearer {api_key}"
    headers["Content-Type"] = JSON_CONTENT_TYPE
    return headers


def classify_transport_error(call: APICall, error: httpx.RequestError) -> TransportError:
    """Wrap an httpx request failure in a TransportError of the right kind."""
    if isinstance(error, httpx.TimeoutException):
        kind = TransportErrorKind.TIMEOUT
    elif isinstance(error, httpx.ConnectError):
        kind = TransportErrorKind.CONNECT
    else:
        kind = TransportErrorKind.NETWORK
    logger.warning(
        "%s %s failed (%s): %s", call.method, call.url, kind.value, type(error).__name__
    )
    return TransportError(
        f"{call.method} {call.url} failed: {kind.value} ({error})",
        kind=kind,
        cause=error,
    )


def _to_raw(response: httpx.Response) -> RawResponse:
    return RawResponse(
        status_code=response.status_code,
        content=response.content,
    )


def _prepare(client: httpx.Client | httpx.AsyncClient, call: APICall) -> httpx.Request:
    body = None if call.body is None else dict(call.body)
    request = client.build_request(call.method, call.url, json=body)
    if not call.authenticated:
        request.headers.pop(AUTHORIZATION, None)
    return request


def _log_completion(call: APICall, status_code: int, started: float) -> None:
    logger.debug(
        "%s %s -> %d (%.0f ms)",
        call.method,
        call.url,
        status_code,
        (time.perf_counter() - started) * 1000,
    )


class TransportBinding:
    """Blocking transport binding backed by ``httpx.Client``."""

    def __init__(
        self,
        config: ClientConfiguration,
        api_key: str | None,
        *,
        version: str,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers=build_default_headers(config, api_key, version=version),
            transport=transport,
        )

    def send(self, call: APICall) -> RawResponse:
        """Perform one HTTP call."""
        request = _prepare(self._client, call)
        started = time.perf_counter()
        try:
            response = self._client.send(request)
        except httpx.RequestError as e:
            raise classify_transport_error(call, e) from e
        _log_completion(call, response.status_code, started)
        return _to_raw(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncTransportBinding:
    """Asyncio transport binding backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: ClientConfiguration,
        api_key: str | None,
        *,
        version: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers=build_default_headers(config, api_key, version=version),
            transport=transport,
        )

    async def send(self, call: APICall) -> RawResponse:
        """Perform one HTTP call, suspending the caller until it completes."""
        request = _prepare(self._client, call)
        started = time.perf_counter()
        try:
            response = await self._client.send(request)
        except httpx.RequestError as e:
            raise classify_transport_error(call, e) from e
        _log_completion(call, response.status_code, started)
        return _to_raw(response)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
