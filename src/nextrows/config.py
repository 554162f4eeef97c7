"""Client configuration using Pydantic settings.

Values resolve from keyword arguments first, then ``NEXTROWS_*`` environment
variables, then an explicit ``.env`` file when one is passed as ``_env_file``.
The resolved configuration is frozen; each client owns its own copy.
"""

from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nextrows.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_MS,
    ENV_PREFIX,
    TOKEN_LIVE_BASE_URL,
    TOKEN_MOCK_BASE_URL,
)
from nextrows.exceptions import ConfigurationError

_SECRET_FIELDS = frozenset({"api_key", "app_secret"})


class ClientConfiguration(BaseSettings):
    """Settings for a NextRows client instance."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # --- Service ---

    api_key: str | None = Field(
        default=None,
        description="Bearer credential sent with every service call",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Service origin prefixed to every endpoint path",
        min_length=1,
    )

    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Per-call timeout in milliseconds",
        ge=1,
    )

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra default headers; cannot override Authorization",
    )

    # --- Token issuance ---

    app_key: str | None = Field(default=None, description="OAuth2 app key")
    app_secret: str | None = Field(default=None, description="OAuth2 app secret")

    use_mock_server: bool = Field(
        default=False,
        description="Issue tokens against the mock host instead of the live one",
    )

    token_live_base_url: str = Field(default=TOKEN_LIVE_BASE_URL, min_length=1)
    token_mock_base_url: str = Field(default=TOKEN_MOCK_BASE_URL, min_length=1)

    # --- Validation Rules ---

    @field_validator("base_url", "token_live_base_url", "token_mock_base_url")
    @classmethod
    def check_http_scheme(cls, v: str) -> str:
        """Require an absolute http(s) origin and drop a trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"must start with http:// or https://, got {v!r}")
        return v.rstrip("/")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def token_base_url(self, *, mock: bool) -> str:
        """Pick the token host for the mock or live variant."""
        return self.token_mock_base_url if mock else self.token_live_base_url

    def redacted(self) -> dict[str, Any]:
        """Return the configuration as a dict with secrets masked."""
        values = self.model_dump()
        for name in _SECRET_FIELDS:
            values[name] = "[SET]" if values.get(name) else "[NOT SET]"
        return values

    def __repr_args__(self):  # noqa: D105
        for name, value in super().__repr_args__():
            if name in _SECRET_FIELDS and value:
                yield name, "***"
            else:
                yield name, value


def load_configuration(
    config: ClientConfiguration | None = None,
    *,
    env_file: str | None = None,
    **overrides: Any,
) -> ClientConfiguration:
    """Resolve a validated configuration with non-None overrides applied.

    Without ``config`` the values come from the environment (and ``env_file``
    when given); overrides always take precedence.

    Raises:
        ConfigurationError: If a value fails validation.
    """
    updates = {k: v for k, v in overrides.items() if v is not None}
    try:
        if config is None:
            return ClientConfiguration(_env_file=env_file, **updates)
        if not updates:
            return config
        return ClientConfiguration(**{**config.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid client configuration: {e}") from e
