"""Base class shared by the provider adapters.

Each adapter knows how to talk to one backend family: how to build the
request for a model, how to turn a successful response into an
:class:`~timemachine.core.models.ImagePayload`, and how to classify a
failure. Adapters never return an error value; they raise an
:class:`~timemachine.core.errors.AttemptError` subclass and let the
orchestrator decide whether escalation continues.

Transport
---------
Adapters share one ``httpx.AsyncClient`` owned by the caller. Every
``httpx.HTTPError`` raised while sending is converted into a
:class:`~timemachine.core.errors.TransportError`, so raw transport
exceptions never cross the adapter boundary. A URL httpx rejects outright
(``httpx.InvalidURL``) becomes a fatal
:class:`~timemachine.core.errors.BackendError`.
"""

import base64
import binascii
import io
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from PIL import Image, UnidentifiedImageError

from ..errors import BackendError, TransportError
from ..models import ImagePayload

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """Abstract base class for all provider adapters.

    Attributes
    ----------
    name : str
        Adapter family key matched against ``ProviderDescriptor.adapter``
    client : httpx.AsyncClient
        Shared HTTP client used for every request
    """

    name: str = "base"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    @abstractmethod
    async def invoke(self, model: str, prompt: str, credential: str | None) -> ImagePayload:
        """Run one generation attempt against ``model``.

        Args:
            model: Backend model identifier from the provider's candidates
            prompt: Non-empty prompt text
            credential: Stored credential, or None for credential-free backends

        Returns
        -------
        ImagePayload
            The generated image reference

        Raises
        ------
        AttemptError
            Classified failure (retryable or fatal)
        """

    async def _send(self, model: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, converting httpx failures into AttemptErrors.

        A URL httpx refuses to build (for example one over its length
        limit) is a BackendError; everything raised while sending is a
        TransportError.
        """
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.InvalidURL as e:
            logger.error(f"{self.name} request for {model} has an invalid URL: {e}")
            raise BackendError(model, f"Request could not be sent: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.name} request for {model} failed: {e}")
            raise TransportError(model, f"Network error contacting backend: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract ``error.message`` from a JSON error body.

        Falls back to ``"API error: <status>"`` when the body is not JSON or
        has no message.
        """
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return f"API error: {response.status_code}"

    @staticmethod
    def _data_uri(model: str, encoded: str, mime_type: str = "image/png") -> ImagePayload:
        """Build a data-URI payload after checking the base64 decodes to an image.

        Raises:
            BackendError: If the data is not valid base64 or not an image
        """
        try:
            raw = base64.b64decode(encoded, validate=True)
            with Image.open(io.BytesIO(raw)) as image:
                width, height = image.size
        except (binascii.Error, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as e:
            raise BackendError(model, f"Backend returned undecodable image data: {e}") from e

        return ImagePayload(
            uri=f"data:{mime_type};base64,{encoded}",
            mime_type=mime_type,
            width=width,
            height=height,
        )
