"""Adapter for the credential-free direct-URL backend (Pollinations).

The backend renders an image for whatever prompt is encoded in the URL path,
so "generating" an image means building the URL and confirming that the
backend answers a lightweight HEAD probe for it. The URL itself is the image
reference handed back to the caller.

URL Template
------------
::

    {base}/prompt/{percent-encoded prompt}?width=1024&height=768&seed=<n>&nologo=true&model=flux

The seed is drawn at random for every attempt so repeated prompts produce
different images.
"""

import logging
import random
from urllib.parse import quote, urlencode

import httpx

from ..errors import BackendError
from ..models import ImagePayload
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

SEED_RANGE = 1_000_000


class DirectUrlAdapter(ProviderAdapter):
    """Build a templated image URL and probe it for existence."""

    name = "direct-url"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://image.pollinations.ai",
        width: int = 1024,
        height: int = 768,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(client)
        self.base_url = base_url.rstrip("/")
        self.width = width
        self.height = height
        self._rng = rng or random.Random()

    def build_url(self, model: str, prompt: str, seed: int) -> str:
        """Return the image URL for a prompt, model and seed."""
        query = urlencode(
            {
                "width": self.width,
                "height": self.height,
                "seed": seed,
                "nologo": "true",
                "model": model,
            }
        )
        return f"{self.base_url}/prompt/{quote(prompt, safe='')}?{query}"

    async def invoke(self, model: str, prompt: str, credential: str | None) -> ImagePayload:
        seed = self._rng.randrange(SEED_RANGE)
        url = self.build_url(model, prompt, seed)

        logger.info(f"Probing direct-URL image for {model} (seed={seed})")
        response = await self._send(model, "HEAD", url)

        if not response.is_success:
            logger.error(f"Direct-URL probe returned status {response.status_code}")
            raise BackendError(
                model,
                f"Image generation failed (status {response.status_code}). Please try again.",
            )

        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        return ImagePayload(uri=url, mime_type=mime_type, width=self.width, height=self.height)
