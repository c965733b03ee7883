"""Pydantic request models for the History Time Machine API.

These models define the JSON schema for every API endpoint that accepts a
body. FastAPI uses them for automatic request validation and OpenAPI
documentation generation.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``.
CredentialRequest
    Payload for ``PUT /api/credentials/{credential_type}``.
DateModel
    A historical date, shared by prompt compilation.
CompilePromptRequest
    Payload for ``POST /api/prompt/compile``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Text prompt for the image.  Must not be empty.
        provider: Provider id (see ``GET /api/providers``) or ``"auto"``.
    """

    prompt: str = Field(
        ...,
        min_length=1,
        description="Prompt text for the image.",
    )
    provider: str = Field(
        default="auto",
        description="Provider id, or 'auto' to pick from stored credentials.",
    )


class CredentialRequest(BaseModel):
    """Request body for ``PUT /api/credentials/{credential_type}``."""

    value: str = Field(
        ...,
        min_length=1,
        description="Credential value.  Stored as-is, without validation.",
    )


class DateModel(BaseModel):
    """A historical date.  ``year`` is positive; ``is_bce`` marks BCE years."""

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)
    hour: int | None = Field(default=None, ge=0, le=23)
    is_bce: bool = False


class EventModel(BaseModel):
    """An "on this day" event to illustrate."""

    text: str = Field(..., min_length=1)
    year: int | None = Field(
        default=None,
        description="Signed year; negative values are BCE.  None for holidays.",
    )


class CompilePromptRequest(BaseModel):
    """Request body for ``POST /api/prompt/compile``.

    Supply either ``date`` (scene prompt, coordinates required) or ``event``
    (event prompt, coordinates optional).
    """

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    date: DateModel | None = None
    event: EventModel | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> CompilePromptRequest:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        if self.date is None and self.event is None:
            raise ValueError("either date or event is required")
        if self.date is not None and self.event is not None:
            raise ValueError("date and event are mutually exclusive")
        if self.date is not None and self.latitude is None:
            raise ValueError("a scene prompt needs latitude and longitude")
        return self
