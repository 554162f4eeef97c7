from collections.abc import Callable
import json
from typing import Any

import httpx

TEST_API_KEY = "test-api-key-0123456789"

Route = tuple[str, str]
Reply = httpx.Response | Callable[[httpx.Request], Any] | Exception


class FakeService:
    """Simulated NextRows service backed by ``httpx.MockTransport``.

    Replies are registered per (method, url path); every request that reaches
    the transport is recorded in ``requests``. Callable replies may be
    coroutine functions when used with the async client.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[Route, Reply] = {}

    def reply(self, method: str, path: str, reply: Reply) -> None:
        self._routes[(method, path)] = reply

    def reply_json(
        self, method: str, path: str, payload: Any, status_code: int = 200
    ) -> None:
        self.reply(method, path, httpx.Response(status_code, json=payload))

    def handler(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        reply = self._routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"error": "not_found"})
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no request reached the service"
        return self.requests[-1]

    def last_body(self) -> Any:
        return json.loads(self.last_request.content)
