"""Endpoint operations: the wire contract for each remote capability.

Each ``Endpoint`` maps one typed request to an ``APICall`` (method, path and
JSON envelope) and decodes the ``RawResponse`` into a typed model or a
classified failure. Payloads supplied by the caller (``data``, ``schema``,
``inputs``) are wrapped in the envelope without inspection.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
from typing import Any

import pydantic

from nextrows.config import ClientConfiguration
from nextrows.constants import (
    CREDITS_PATH,
    EXTRACT_PATH,
    RUN_APP_JSON_PATH,
    TOKEN_PATH,
)
from nextrows.exceptions import APIError, DecodingError, NextrowsError
from nextrows.models import (
    CreditsResponse,
    ExtractResponse,
    RunAppResponse,
    TokenResponse,
)
from nextrows.types import (
    APICall,
    ExtractRequest,
    Failure,
    RawResponse,
    Result,
    RunAppRequest,
    Success,
    TokenRequest,
)


@dataclasses.dataclass(frozen=True, slots=True)
class Endpoint[TRequest, TResponse: pydantic.BaseModel]:
    """One remote operation: request shaping plus response decoding."""

    name: str
    response_model: type[TResponse]
    build: Callable[[TRequest, ClientConfiguration], APICall]

    def decode(self, raw: RawResponse) -> Result[TResponse, NextrowsError]:
        """Turn a raw response into the typed model or a classified failure."""
        if not raw.is_success:
            return Failure(api_error_from_response(raw))
        try:
            raw.json()  # empty and malformed bodies
        except DecodingError as e:
            return Failure(e)
        try:
            return Success(self.response_model.model_validate_json(raw.content))
        except pydantic.ValidationError as e:
            return Failure(
                DecodingError(
                    f"{self.response_model.__name__} does not match body: {_summarize(e)}",
                    content=raw.text,
                )
            )


def _summarize(error: pydantic.ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def api_error_from_response(raw: RawResponse) -> APIError:
    """Build an APIError from a non-2xx response, keeping whatever body it has."""
    body: Any = None
    try:
        body = raw.json()
    except DecodingError:
        body = raw.text or None

    error = message = None
    if isinstance(body, dict):
        if body.get("error") is not None:
            error = str(body["error"])
        if body.get("message") is not None:
            message = str(body["message"])
    return APIError(raw.status_code, body=body, error=error, message=message)


# --- Request shaping ---


def extract_body(request: ExtractRequest) -> dict[str, Any]:
    """Envelope for ``POST /v1/extract``; absent prompt/schema keys are omitted."""
    body: dict[str, Any] = {"type": request.type, "data": list(request.data)}
    if request.prompt is not None:
        body["prompt"] = request.prompt
    if request.schema is not None:
        body["schema"] = request.schema
    return body


def run_app_body(request: RunAppRequest) -> dict[str, Any]:
    """Envelope for ``POST /v1/apps/run/json``; input values keep their types."""
    return {
        "appId": request.app_id,
        "inputs": [{"key": item.key, "value": item.value} for item in request.inputs],
    }


def token_body(request: TokenRequest) -> dict[str, str]:
    return {
        "grant_type": request.grant_type,
        "appkey": request.app_key,
        "secretkey": request.app_secret,
    }


EXTRACT: Endpoint[ExtractRequest, ExtractResponse] = Endpoint(
    name="extract",
    response_model=ExtractResponse,
    build=lambda request, _config: APICall("POST", EXTRACT_PATH, extract_body(request)),
)

RUN_APP_JSON: Endpoint[RunAppRequest, RunAppResponse] = Endpoint(
    name="run_app_json",
    response_model=RunAppResponse,
    build=lambda request, _config: APICall(
        "POST", RUN_APP_JSON_PATH, run_app_body(request)
    ),
)

GET_CREDITS: Endpoint[None, CreditsResponse] = Endpoint(
    name="get_credits",
    response_model=CreditsResponse,
    build=lambda _request, _config: APICall("GET", CREDITS_PATH),
)

# The token host is a separate service that authenticates with the app key and
# secret in the body, so the NextRows bearer credential is not sent to it.
ISSUE_ACCESS_TOKEN: Endpoint[TokenRequest, TokenResponse] = Endpoint(
    name="issue_access_token",
    response_model=TokenResponse,
    build=lambda request, config: APICall(
        "POST",
        TOKEN_PATH,
        token_body(request),
        base_url=config.token_base_url(mock=request.mock),
        authenticated=False,
    ),
)
