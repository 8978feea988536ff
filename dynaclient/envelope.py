"""Decode API error response bodies.

Two wire shapes are understood:

  legacy:    {"errors": [{"errorMessage": "...", "status": "..."}]}
  versioned: {"id": "...", "errors": [{"detail": "...", "code": "..."}]}

The shape is picked from the fields present; unknown fields are ignored.
"""

from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import EnvelopeDecodeError


def _as_text(value: Any) -> Any:
    # codes and statuses arrive as strings or numbers depending on the API
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class LegacyErrorDetail(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    error_message: str = Field(alias="errorMessage")
    status: str

    @field_validator("status", mode="before")
    @classmethod
    def status_as_text(cls, value: Any) -> Any:
        return _as_text(value)

    @property
    def message(self) -> str:
        return self.error_message

    @property
    def code(self) -> str:
        return self.status


class VersionedErrorDetail(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    detail: str
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def code_as_text(cls, value: Any) -> Any:
        return _as_text(value)

    @property
    def message(self) -> str:
        return self.detail


class LegacyEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    shape: Literal["legacy"] = "legacy"
    errors: list[LegacyErrorDetail] = Field(min_length=1)

    @property
    def identifier(self) -> str | None:
        return None

    @property
    def first(self) -> LegacyErrorDetail:
        return self.errors[0]

    @property
    def message(self) -> str:
        return self.first.message

    @property
    def code(self) -> str:
        return self.first.code


class VersionedEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    shape: Literal["versioned"] = "versioned"
    id: str
    errors: list[VersionedErrorDetail] = Field(min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value: Any) -> Any:
        return _as_text(value)

    @property
    def identifier(self) -> str:
        return self.id

    @property
    def first(self) -> VersionedErrorDetail:
        return self.errors[0]

    @property
    def message(self) -> str:
        return self.first.detail

    @property
    def code(self) -> str:
        return self.first.code


ErrorEnvelope = Union[LegacyEnvelope, VersionedEnvelope]


def _detect_shape(document: dict[str, Any]) -> type[LegacyEnvelope] | type[VersionedEnvelope] | None:
    errors = document.get("errors")
    if not isinstance(errors, list) or not errors or not isinstance(errors[0], dict):
        return None
    first = errors[0]
    if "id" in document or "detail" in first or "code" in first:
        return VersionedEnvelope
    if "errorMessage" in first or "status" in first:
        return LegacyEnvelope
    return None


def decode_envelope(body: str | bytes | None) -> ErrorEnvelope:
    """Parse an error body into whichever envelope shape it carries.

    Raises EnvelopeDecodeError when the body is empty, not JSON, or
    matches neither shape.
    """
    text = body.decode("utf-8", "replace") if isinstance(body, bytes) else body
    if text is None or not text.strip():
        raise EnvelopeDecodeError("Error response has no body")

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise EnvelopeDecodeError(f"Error body is not JSON: {exc}", text) from exc
    if not isinstance(document, dict):
        raise EnvelopeDecodeError("Error body is not a JSON object", text)

    shape = _detect_shape(document)
    if shape is None:
        raise EnvelopeDecodeError("Error body matches no known error envelope", text)
    try:
        return shape.model_validate({k: v for k, v in document.items() if k != "shape"})
    except ValidationError as exc:
        raise EnvelopeDecodeError(f"Invalid {shape.__name__}: {exc}", text) from exc
