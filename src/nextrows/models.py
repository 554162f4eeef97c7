"""Response models validated with Pydantic.

Models accept unknown keys so that fields the service adds later do not break
decoding. Known fields are strict: a string where a boolean or number is
expected is a shape mismatch and is not coerced. Payloads whose shape depends
on the caller's schema are kept as ``Any``; callers narrow them with the
schema they supplied.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CellValue = str | int | float | bool | None


class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
        strict=True,
    )


class ExtractResponse(_ResponseModel):
    """Result of ``POST /v1/extract``."""

    success: bool
    data: Any = None


class RunAppData(_ResponseModel):
    """Tabular output of an app run."""

    columns: list[str]
    rows: list[list[CellValue]]

    def records(self) -> list[dict[str, CellValue]]:
        """Return rows as dictionaries keyed by column name."""
        return [dict(zip(self.columns, row, strict=False)) for row in self.rows]


class RunAppResponse(_ResponseModel):
    """Result of ``POST /v1/apps/run/json``."""

    success: bool
    data: RunAppData | None = None
    run_id: str | None = Field(default=None, alias="runId")
    elapsed_time: float | None = Field(
        default=None,
        alias="elapsedTime",
        description="Execution time in milliseconds",
    )
    error: str | None = None


class CreditsResponse(_ResponseModel):
    """Balance payload of ``GET /v1/credits``.

    The service defines the keys; all of them are kept as extra fields.
    """

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

    def __getitem__(self, key: str) -> Any:
        return self.to_dict()[key]


class TokenResponse(_ResponseModel):
    """Access token issued by the OAuth2 token endpoint."""

    token: str
    token_type: str
    expires_at: str = Field(alias="expires_dt")

    def __repr__(self) -> str:
        return f"TokenResponse(token='***', token_type={self.token_type!r}, expires_at={self.expires_at!r})"
