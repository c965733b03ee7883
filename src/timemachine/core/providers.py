"""Provider descriptors and the immutable provider registry.

A *provider* is one image-generation backend family as offered to the user:
its display metadata, the credential type it needs (if any), the adapter
family that talks to it, and the ordered list of backend models to try.

Unlike a module-level table, the registry is an explicit object that is
passed to :class:`~timemachine.core.orchestrator.GenerationOrchestrator` at
construction time, so tests can substitute alternate registries.

Default Providers
-----------------
========================  ==========  =========================================
Provider id               Credential  Model escalation order
========================  ==========  =========================================
``nanobanana``            gemini      gemini-2.5-flash-image, ...-preview
``gemini3``               gemini      gemini-3-pro-image-preview
``pollinations``          (none)      flux
``openai``                openai      dall-e-3
========================  ==========  =========================================

Automatic Selection
-------------------
``"auto"`` resolves to the primary provider when the shared credential is
stored and to the credential-free backup otherwise. The rule depends only on
credential presence; see :meth:`ProviderRegistry.select_auto_provider`.

Usage Example
-------------
    >>> from timemachine.core.providers import default_registry
    >>> registry = default_registry()
    >>> registry.get("pollinations").model_candidates
    ('flux',)
    >>> registry.select_auto_provider(lambda credential_type: False)
    'pollinations'
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

AUTO = "auto"

AdapterKind = Literal["direct-url", "multimodal", "image-api"]

# Credential types
GEMINI_CREDENTIAL = "gemini"
OPENAI_CREDENTIAL = "openai"


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of one provider.

    Attributes:
        id: Unique provider key (never ``"auto"``).
        display_name: Human-readable name shown to the user.
        adapter: Adapter family used to talk to the backend.
        model_candidates: Backend model identifiers, tried strictly in order.
        credential_type: Credential category required, or ``None``.
        icon: Cosmetic marker for the UI.
    """

    id: str
    display_name: str
    adapter: AdapterKind
    model_candidates: tuple[str, ...]
    credential_type: str | None = None
    icon: str = ""

    def __post_init__(self) -> None:
        if not self.id or self.id == AUTO:
            raise ValueError(f"Invalid provider id: {self.id!r}")
        # Accept any sequence but freeze it so the descriptor stays immutable
        object.__setattr__(self, "model_candidates", tuple(self.model_candidates))
        if not self.model_candidates:
            raise ValueError(f"Provider '{self.id}' must declare at least one model candidate")

    @property
    def requires_credential(self) -> bool:
        return self.credential_type is not None

    def to_dict(self) -> dict:
        """Serialise the descriptor for API responses."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "icon": self.icon,
            "credential_type": self.credential_type,
            "model_candidates": list(self.model_candidates),
        }


class ProviderRegistry:
    """Read-only catalog of providers, in declaration order.

    Args:
        providers: Descriptors to register. Ids must be unique.
        primary_id: Provider chosen by ``"auto"`` when its credential exists.
        backup_id: Credential-free provider chosen by ``"auto"`` otherwise.

    Raises:
        ValueError: On duplicate ids, unknown primary/backup ids, or a backup
            provider that requires a credential.
    """

    def __init__(
        self,
        providers: Iterable[ProviderDescriptor],
        *,
        primary_id: str,
        backup_id: str,
    ) -> None:
        self._providers: dict[str, ProviderDescriptor] = {}
        for descriptor in providers:
            if descriptor.id in self._providers:
                raise ValueError(f"Provider '{descriptor.id}' is registered twice")
            self._providers[descriptor.id] = descriptor

        for role, provider_id in (("primary", primary_id), ("backup", backup_id)):
            if provider_id not in self._providers:
                raise ValueError(f"Unknown {role} provider: {provider_id}")
        if self._providers[backup_id].requires_credential:
            raise ValueError(f"Backup provider '{backup_id}' must not require a credential")

        self.primary_id = primary_id
        self.backup_id = backup_id
        logger.debug(f"Provider registry built: {list(self._providers)}")

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, provider_id: str) -> ProviderDescriptor | None:
        return self._providers.get(provider_id)

    def ids(self) -> list[str]:
        return list(self._providers)

    def select_auto_provider(self, has_credential: Callable[[str], bool]) -> str:
        """Resolve ``"auto"`` to a concrete provider id.

        Pure function of credential presence: the primary provider if its
        credential is stored, otherwise the credential-free backup.

        Args:
            has_credential: Presence check, usually ``SecretStore.has``.

        Returns:
            The id of the provider to use.
        """
        primary = self._providers[self.primary_id]
        if primary.credential_type is None or has_credential(primary.credential_type):
            return primary.id
        return self.backup_id

    def list_available(self, has_credential: Callable[[str], bool]) -> list[ProviderDescriptor]:
        """Return the providers a caller may choose, in declaration order.

        Credential-free providers are always included; the rest only when
        their credential is stored.
        """
        return [
            descriptor
            for descriptor in self._providers.values()
            if descriptor.credential_type is None
            or has_credential(descriptor.credential_type)
        ]


DEFAULT_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        id="nanobanana",
        display_name="Nano Banana (Free Tier)",
        icon="🍌",
        adapter="multimodal",
        credential_type=GEMINI_CREDENTIAL,
        model_candidates=("gemini-2.5-flash-image", "gemini-2.5-flash-image-preview"),
    ),
    ProviderDescriptor(
        id="gemini3",
        display_name="Nano Banana Pro",
        icon="✨",
        adapter="multimodal",
        credential_type=GEMINI_CREDENTIAL,
        model_candidates=("gemini-3-pro-image-preview",),
    ),
    ProviderDescriptor(
        id="pollinations",
        display_name="Pollinations (Backup)",
        icon="🆓",
        adapter="direct-url",
        credential_type=None,
        model_candidates=("flux",),
    ),
    ProviderDescriptor(
        id="openai",
        display_name="DALL-E 3",
        icon="🟢",
        adapter="image-api",
        credential_type=OPENAI_CREDENTIAL,
        model_candidates=("dall-e-3",),
    ),
)

CREDENTIAL_TYPES: tuple[str, ...] = (GEMINI_CREDENTIAL, OPENAI_CREDENTIAL)


def default_registry() -> ProviderRegistry:
    """Build the registry of the four built-in providers."""
    return ProviderRegistry(DEFAULT_PROVIDERS, primary_id="nanobanana", backup_id="pollinations")
