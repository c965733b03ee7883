"""Adapter for the credential-gated multimodal backend (Gemini).

The request asks for both text and image modalities; the first response
part carrying inline image data becomes a ``data:`` URI payload.

Failure Classification
----------------------
Only an explicit quota signal lets the orchestrator move on to the next
model candidate:

=====================================  ============================
Response                               Classification
=====================================  ============================
non-2xx, message matches quota         QuotaExceededError (retry)
non-2xx, any other message             BackendError (fatal)
2xx without any inline image part      BackendError (fatal)
=====================================  ============================

A successful response that contains no image is not a quota signal.

Quota Detection
---------------
The backend returns unstructured error text, so quota detection is a
substring heuristic over :data:`QUOTA_INDICATORS`. If the backend changes its
wording this list is the one place to update.
"""

import logging
from typing import Any

import httpx

from ..errors import BackendError, QuotaExceededError
from ..models import ImagePayload
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

# Lower-case substrings that mark an error message as quota exhaustion.
QUOTA_INDICATORS: tuple[str, ...] = ("quota", "limit: 0")


def is_quota_message(message: str | None) -> bool:
    """Return True if an error message signals quota or zero-limit exhaustion.

    Matching is case-insensitive against :data:`QUOTA_INDICATORS`.
    """
    if not message:
        return False
    lowered = message.lower()
    return any(indicator in lowered for indicator in QUOTA_INDICATORS)


def _first_inline_image(body: Any) -> tuple[str, str] | None:
    """Find the first part with inline image data.

    Returns:
        ``(base64_data, mime_type)`` or None if no part carries an image.
    """
    if not isinstance(body, dict):
        return None
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline_data = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline_data, dict) and inline_data.get("data"):
            mime_type = inline_data.get("mimeType") or inline_data.get("mime_type") or "image/png"
            return str(inline_data["data"]), str(mime_type)
    return None


class MultimodalAdapter(ProviderAdapter):
    """Call ``models/{model}:generateContent`` with text+image output."""

    name = "multimodal"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
    ) -> None:
        super().__init__(client)
        self.base_url = base_url.rstrip("/")

    def endpoint(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"

    @staticmethod
    def build_body(prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    async def invoke(self, model: str, prompt: str, credential: str | None) -> ImagePayload:
        if not credential:
            raise BackendError(model, "Gemini API key not configured")

        logger.info(f"Trying multimodal model {model}")
        response = await self._send(
            model,
            "POST",
            self.endpoint(model),
            headers={"x-goog-api-key": credential},
            json=self.build_body(prompt),
        )

        if not response.is_success:
            message = self._error_message(response)
            if is_quota_message(message):
                logger.warning(f"Model {model} failed with quota: {message}")
                raise QuotaExceededError(model, message)
            logger.error(f"Model {model} rejected request: {message}")
            raise BackendError(model, message)

        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(model, "Backend returned a malformed response") from e

        image = _first_inline_image(body)
        if image is None:
            logger.error(f"Model {model} returned no image part")
            raise BackendError(model, "No image was generated")

        encoded, mime_type = image
        return self._data_uri(model, encoded, mime_type)
