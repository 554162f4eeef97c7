"""Request values and call descriptors that flow through the client.

Requests are immutable dataclasses validated on construction. Only structural
invariants are checked here; whether a URL resolves or a schema is well formed
is left to the service.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import dataclasses
import json
import typing

from nextrows.constants import (
    GRANT_TYPE_CLIENT_CREDENTIALS,
    MAX_EXTRACT_SOURCES,
    MAX_PROMPT_LENGTH,
)
from nextrows.exceptions import DecodingError, ValidationError


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValidationError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _to_plain_json(value: typing.Any) -> typing.Any:
    """Copy nested mappings and sequences into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {str(k): _to_plain_json(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_to_plain_json(v) for v in value]
    return value


# --- Result Monad ---
# Success or one classified failure, never both.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful call carrying the decoded response."""

    value: TSuccess

    def unwrap(self) -> TSuccess:
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed call carrying the classified error."""

    error: TFailure

    def unwrap(self) -> typing.NoReturn:
        raise self.error


Result = Success[TSuccess] | Failure[TFailure]

# --- Request Values ---

ExtractType = typing.Literal["url", "text"]
AppInputValue = str | int | float | bool

_EXTRACT_TYPES: tuple[str, ...] = typing.get_args(ExtractType)


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractRequest:
    """Extract structured data from URLs or raw text.

    ``data`` holds URLs when ``type`` is ``"url"`` and raw text or HTML when it
    is ``"text"``. ``schema`` is a JSON Schema mapping sent to the service
    unchanged; without it the service infers the output structure.
    """

    type: ExtractType
    data: Sequence[str]
    prompt: str | None = None
    schema: Mapping[str, typing.Any] | None = None

    def __post_init__(self) -> None:
        """Validate source type, source count and prompt length."""
        _require(
            condition=self.type in _EXTRACT_TYPES,
            message=f"must be one of {list(_EXTRACT_TYPES)}, got {self.type!r}",
            field_name="type",
        )
        _require(
            condition=not isinstance(self.data, str | bytes),
            message="must be a sequence of strings, not a single string",
            field_name="data",
        )
        data = tuple(self.data)
        _require(
            condition=1 <= len(data) <= MAX_EXTRACT_SOURCES,
            message=f"must hold between 1 and {MAX_EXTRACT_SOURCES} sources, got {len(data)}",
            field_name="data",
        )
        _require(
            condition=all(isinstance(item, str) for item in data),
            message="every source must be a str",
            field_name="data",
        )
        object.__setattr__(self, "data", data)

        if self.prompt is not None:
            _require(
                condition=isinstance(self.prompt, str),
                message="must be a str",
                field_name="prompt",
            )
            _require(
                condition=len(self.prompt) <= MAX_PROMPT_LENGTH,
                message=f"must be at most {MAX_PROMPT_LENGTH} characters",
                field_name="prompt",
            )
        if self.schema is not None:
            _require(
                condition=isinstance(self.schema, Mapping),
                message="must be a mapping",
                field_name="schema",
            )
            object.__setattr__(self, "schema", _to_plain_json(self.schema))


@dataclasses.dataclass(frozen=True, slots=True)
class AppInput:
    """A single key/value input for an app run."""

    key: str
    value: AppInputValue

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.key, str) and self.key != "",
            message="must be a non-empty str",
            field_name="key",
        )
        _require(
            condition=isinstance(self.value, str | int | float | bool),
            message=f"must be str, int, float or bool, got {type(self.value).__name__}",
            field_name=f"inputs[{self.key!r}].value",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class RunAppRequest:
    """Run a published app and receive its output as JSON rows."""

    app_id: str
    inputs: Sequence[AppInput | Mapping[str, typing.Any]] = ()

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.app_id, str) and self.app_id.strip() != "",
            message="must be a non-empty str",
            field_name="app_id",
        )
        normalized: list[AppInput] = []
        for item in self.inputs:
            if isinstance(item, AppInput):
                normalized.append(item)
                continue
            _require(
                condition=isinstance(item, Mapping) and {"key", "value"} <= set(item),
                message="each input must be an AppInput or a mapping with 'key' and 'value'",
                field_name="inputs",
            )
            normalized.append(AppInput(key=item["key"], value=item["value"]))
        object.__setattr__(self, "inputs", tuple(normalized))

    @classmethod
    def from_mapping(
        cls, app_id: str, inputs: Mapping[str, AppInputValue]
    ) -> RunAppRequest:
        """Build a request from a plain mapping, keeping insertion order."""
        return cls(
            app_id=app_id,
            inputs=tuple(AppInput(key=k, value=v) for k, v in inputs.items()),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class TokenRequest:
    """OAuth2 client-credentials grant for the financial-data API.

    ``mock`` selects the mock token host instead of the live one.
    """

    app_key: str
    app_secret: str
    mock: bool = False
    grant_type: typing.Literal["client_credentials"] = dataclasses.field(
        default=GRANT_TYPE_CLIENT_CREDENTIALS, init=False
    )

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.app_key, str),
            message="must be a str",
            field_name="app_key",
        )
        _require(
            condition=isinstance(self.app_secret, str),
            message="must be a str",
            field_name="app_secret",
        )

    def __repr__(self) -> str:
        return f"TokenRequest(app_key={self.app_key!r}, app_secret='***', mock={self.mock})"


# --- Call Descriptors ---


@dataclasses.dataclass(frozen=True, slots=True)
class APICall:
    """A fully shaped HTTP call ready for the transport.

    ``base_url`` overrides the client's base address when set; the token
    endpoint lives on a different host. Calls with ``authenticated=False`` are
    sent without the bearer credential.
    """

    method: typing.Literal["GET", "POST"]
    path: str
    body: Mapping[str, typing.Any] | None = None
    base_url: str | None = None
    authenticated: bool = True

    @property
    def url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/") + self.path
        return self.path


@dataclasses.dataclass(frozen=True, slots=True)
class RawResponse:
    """Status and body of a completed HTTP call."""

    status_code: int
    content: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> typing.Any:
        """Parse the body as JSON, raising DecodingError on malformed content."""
        if not self.content.strip():
            raise DecodingError("empty response body", content="")
        try:
            return json.loads(self.content)
        except (ValueError, UnicodeDecodeError) as e:
            raise DecodingError(f"body is not valid JSON ({e})", content=self.text) from e
