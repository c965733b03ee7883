"""Adapter for the credential-gated image-specific backend (OpenAI Images)."""

import logging
from typing import Any

import httpx

from ..errors import BackendError
from ..models import ImagePayload
from .base import ProviderAdapter

logger = logging.getLogger(__name__)


class ImageApiAdapter(ProviderAdapter):
    """Request exactly one base64 image from ``/images/generations``.

    Every failure is fatal: a non-2xx response or a response without
    ``data[0].b64_json``.
    """

    name = "image-api"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://api.openai.com/v1",
        size: str = "1024x1024",
    ) -> None:
        super().__init__(client)
        self.base_url = base_url.rstrip("/")
        self.size = size

    def build_body(self, model: str, prompt: str) -> dict[str, Any]:
        return {
            "model": model,
            "prompt": prompt,
            "n": 1,
            "size": self.size,
            "response_format": "b64_json",
        }

    async def invoke(self, model: str, prompt: str, credential: str | None) -> ImagePayload:
        if not credential:
            raise BackendError(model, "OpenAI API key not configured")

        logger.info(f"Requesting image from {model}")
        response = await self._send(
            model,
            "POST",
            f"{self.base_url}/images/generations",
            headers={"Authorization": f"Bearer {credential}"},
            json=self.build_body(model, prompt),
        )

        if not response.is_success:
            message = self._error_message(response)
            logger.error(f"Model {model} rejected request: {message}")
            raise BackendError(model, message)

        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(model, "Backend returned a malformed response") from e

        data = body.get("data") if isinstance(body, dict) else None
        first = data[0] if isinstance(data, list) and data else None
        encoded = first.get("b64_json") if isinstance(first, dict) else None
        if not encoded:
            logger.error(f"Model {model} returned no image data")
            raise BackendError(model, "No image was generated")

        return self._data_uri(model, encoded)
