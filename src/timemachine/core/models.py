"""Data models for generation requests and their outcomes."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """One user-issued generation request.

    ``provider_choice`` is either a registered provider id or ``"auto"``.
    """

    prompt: str
    provider_choice: str = "auto"

    def has_prompt(self) -> bool:
        return bool(self.prompt and self.prompt.strip())


@dataclass(frozen=True)
class ImagePayload:
    """Image produced by an adapter.

    ``uri`` is either a remote https URL (direct-URL backend) or a ``data:``
    URI carrying the base64-encoded image. Dimensions are known when the
    adapter decoded the image itself.
    """

    uri: str
    mime_type: str = "image/png"
    width: int | None = None
    height: int | None = None


class FailureKind(str, Enum):
    """Why a request ended in failure."""

    MISSING_CREDENTIAL = "missing_credential"
    INVALID_PROVIDER = "invalid_provider"
    QUOTA_EXHAUSTED = "quota_exhausted"
    BACKEND_ERROR = "backend_error"
    TRANSPORT_ERROR = "transport_error"
    BUSY = "busy"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class GenerationSuccess:
    """Terminal outcome carrying a displayable image."""

    provider_id: str
    image_data: str
    model: str
    mime_type: str = "image/png"
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    ok = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "provider_id": self.provider_id,
            "model": self.model,
            "image_data": self.image_data,
            "mime_type": self.mime_type,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class GenerationFailure:
    """Terminal outcome describing why no image was produced.

    ``last_attempted_provider`` is the resolved provider id, or the raw
    choice when it could not be resolved. ``last_attempted_model`` is None
    when no backend was contacted.
    """

    reason: str
    kind: FailureKind
    last_attempted_provider: str | None = None
    last_attempted_model: str | None = None

    ok = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "reason": self.reason,
            "kind": self.kind.value,
            "last_attempted_provider": self.last_attempted_provider,
            "last_attempted_model": self.last_attempted_model,
        }


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]
