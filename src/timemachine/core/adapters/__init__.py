"""Provider adapters, one per backend family.

- DirectUrlAdapter: credential-free templated-URL backend
- MultimodalAdapter: text+image multimodal backend with quota escalation
- ImageApiAdapter: single-image generation backend
"""

import httpx

from ..config import TimeMachineConfig
from .base import ProviderAdapter
from .direct_url import DirectUrlAdapter
from .image_api import ImageApiAdapter
from .multimodal import QUOTA_INDICATORS, MultimodalAdapter, is_quota_message


def build_adapters(client: httpx.AsyncClient, config: TimeMachineConfig) -> dict[str, ProviderAdapter]:
    """Instantiate every adapter family, keyed by ``ProviderDescriptor.adapter``."""
    adapters: list[ProviderAdapter] = [
        DirectUrlAdapter(
            client,
            base_url=config.pollinations_base_url,
            width=config.direct_url_width,
            height=config.direct_url_height,
        ),
        MultimodalAdapter(client, base_url=config.gemini_base_url),
        ImageApiAdapter(client, base_url=config.openai_base_url, size=config.openai_image_size),
    ]
    return {adapter.name: adapter for adapter in adapters}


__all__ = [
    "ProviderAdapter",
    "DirectUrlAdapter",
    "MultimodalAdapter",
    "ImageApiAdapter",
    "QUOTA_INDICATORS",
    "is_quota_message",
    "build_adapters",
]
