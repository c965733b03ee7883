"""Fallback orchestration across providers and model candidates.

:class:`GenerationOrchestrator` is the single entry point for image
generation. Given a prompt and a provider choice it resolves the provider,
reads the required credential, and walks the provider's model candidates
with the matching adapter until one produces an image or escalation stops.

State Machine
-------------
::

    IDLE -> RESOLVING -> ATTEMPTING(i) -> SUCCEEDED | FAILED -> IDLE

- **RESOLVING**: ``"auto"`` is resolved from credential presence. Unknown
  providers and missing credentials fail here, before any network call.
- **ATTEMPTING(i)**: ``model_candidates[i]`` is tried. A retryable
  (quota) error advances to ``i + 1`` while candidates remain; a fatal
  error, or a retryable one on the last candidate, ends the request.
- **SUCCEEDED / FAILED**: exactly one outcome is returned and the
  orchestrator goes back to IDLE.

Candidates are tried strictly in declaration order, one at a time, so a
request never makes more than ``len(model_candidates)`` backend calls.

Transport Errors
----------------
A network failure (unreachable host, timeout) is fatal for the request. It
does not advance to the next model: only an explicit quota message does.

Concurrency
-----------
One orchestrator handles one request at a time. A call to :meth:`generate`
while another is in flight returns a ``busy`` failure immediately without
touching the network.

Usage Example
-------------
    >>> import httpx
    >>> from timemachine.core import config, default_registry, SecretStore
    >>> from timemachine.core.adapters import build_adapters
    >>>
    >>> async with httpx.AsyncClient(timeout=config.request_timeout) as client:
    ...     orchestrator = GenerationOrchestrator(
    ...         default_registry(),
    ...         SecretStore(config.secret_store_path),
    ...         build_adapters(client, config),
    ...     )
    ...     outcome = await orchestrator.generate("Rome, 44 BCE", "auto")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Protocol

from .adapters.base import ProviderAdapter
from .errors import AttemptError, TransportError
from .models import (
    FailureKind,
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
)
from .providers import AUTO, ProviderDescriptor, ProviderRegistry

logger = logging.getLogger(__name__)


class CredentialSource(Protocol):
    """Read side of the secret store used by the orchestrator."""

    def get(self, credential_type: str) -> str | None: ...

    def has(self, credential_type: str) -> bool: ...


class OrchestratorState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class GenerationOrchestrator:
    """Resolve a provider and escalate through its model candidates.

    Attributes:
        registry: Provider catalog injected at construction time.
        secrets: Credential source (usually a :class:`SecretStore`).
        adapters: Adapter instances keyed by adapter family name.
        state: Current :class:`OrchestratorState`.
        attempt_index: Index of the candidate being tried, or None.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        secrets: CredentialSource,
        adapters: Mapping[str, ProviderAdapter],
    ) -> None:
        missing = {d.adapter for d in registry} - set(adapters)
        if missing:
            raise ValueError(f"No adapter registered for: {', '.join(sorted(missing))}")

        self.registry = registry
        self.secrets = secrets
        self.adapters = dict(adapters)
        self.state = OrchestratorState.IDLE
        self.attempt_index: int | None = None

        self._lock = asyncio.Lock()
        self._attempt_task: asyncio.Future | None = None
        self._cancel_requested = False

    # -- Public interface ---------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def resolve_provider(self, provider_choice: str) -> str:
        """Turn ``"auto"`` into a provider id; other choices pass through."""
        if provider_choice == AUTO:
            return self.registry.select_auto_provider(self.secrets.has)
        return provider_choice

    def list_available_providers(self) -> list[ProviderDescriptor]:
        """Providers whose credential is stored, plus the credential-free backup."""
        return self.registry.list_available(self.secrets.has)

    async def generate(self, prompt: str, provider_choice: str = AUTO) -> GenerationOutcome | None:
        """Generate one image for ``prompt``.

        Args:
            prompt: Prompt text. Empty or whitespace-only prompts are ignored.
            provider_choice: Registered provider id or ``"auto"``.

        Returns:
            Exactly one :class:`GenerationSuccess` or :class:`GenerationFailure`,
            or None when the prompt is empty (no request is started).
        """
        request = GenerationRequest(prompt=prompt, provider_choice=provider_choice)
        if not request.has_prompt():
            logger.debug("Ignoring generation request with empty prompt")
            return None

        if self._lock.locked():
            logger.warning("Rejecting overlapping generation request")
            return GenerationFailure(
                reason="Another image is already being generated",
                kind=FailureKind.BUSY,
                last_attempted_provider=provider_choice,
            )

        async with self._lock:
            self._cancel_requested = False
            try:
                outcome = await self._run(prompt, provider_choice)

                if isinstance(outcome, GenerationSuccess):
                    self.state = OrchestratorState.SUCCEEDED
                    logger.info(f"Generated image with {outcome.provider_id}/{outcome.model}")
                else:
                    self.state = OrchestratorState.FAILED
                    logger.error(f"Image generation failed ({outcome.kind.value}): {outcome.reason}")
                return outcome
            finally:
                self.attempt_index = None
                self._attempt_task = None
                self.state = OrchestratorState.IDLE

    async def submit(self, request: GenerationRequest) -> GenerationOutcome | None:
        """Generate from a :class:`GenerationRequest`."""
        return await self.generate(request.prompt, request.provider_choice)

    def cancel(self) -> bool:
        """Cancel the in-flight attempt, if any.

        The pending :meth:`generate` call returns a ``cancelled`` failure.

        Returns:
            True if an attempt was cancelled.
        """
        if self._attempt_task is None or self._attempt_task.done():
            return False
        self._cancel_requested = True
        self._attempt_task.cancel()
        logger.info("Cancellation requested for in-flight generation")
        return True

    # -- Internals ----------------------------------------------------------

    async def _run(self, prompt: str, provider_choice: str) -> GenerationOutcome:
        self.state = OrchestratorState.RESOLVING

        provider_id = self.resolve_provider(provider_choice)
        descriptor = self.registry.get(provider_id)
        if descriptor is None:
            return GenerationFailure(
                reason=f"Invalid provider selected: {provider_choice}",
                kind=FailureKind.INVALID_PROVIDER,
                last_attempted_provider=provider_choice,
            )

        credential: str | None = None
        if descriptor.credential_type is not None:
            credential = self.secrets.get(descriptor.credential_type)
            if not credential:
                return GenerationFailure(
                    reason=f"missing credential for provider {descriptor.id}",
                    kind=FailureKind.MISSING_CREDENTIAL,
                    last_attempted_provider=descriptor.id,
                )

        logger.info(f"Generating with {descriptor.display_name} ({descriptor.id})")
        return await self._escalate(descriptor, prompt, credential)

    async def _escalate(
        self, descriptor: ProviderDescriptor, prompt: str, credential: str | None
    ) -> GenerationOutcome:
        adapter = self.adapters[descriptor.adapter]
        candidates = descriptor.model_candidates

        for index, model in enumerate(candidates):
            self.state = OrchestratorState.ATTEMPTING
            self.attempt_index = index

            self._attempt_task = asyncio.ensure_future(adapter.invoke(model, prompt, credential))
            try:
                payload = await self._attempt_task
            except asyncio.CancelledError:
                if not self._cancel_requested:
                    raise
                return GenerationFailure(
                    reason="Generation cancelled",
                    kind=FailureKind.CANCELLED,
                    last_attempted_provider=descriptor.id,
                    last_attempted_model=model,
                )
            except AttemptError as e:
                if e.retryable and index + 1 < len(candidates):
                    logger.warning(f"Model {model} failed with quota, trying next...")
                    continue
                return self._failure_from(descriptor, e)

            return GenerationSuccess(
                provider_id=descriptor.id,
                image_data=payload.uri,
                model=model,
                mime_type=payload.mime_type,
            )

        # Unreachable: ProviderDescriptor guarantees at least one candidate
        raise RuntimeError(f"Provider {descriptor.id} has no model candidates")

    @staticmethod
    def _failure_from(descriptor: ProviderDescriptor, error: AttemptError) -> GenerationFailure:
        if error.retryable:
            reason = f"Quota reached on all models for {descriptor.display_name}. {error.message}"
            kind = FailureKind.QUOTA_EXHAUSTED
        elif isinstance(error, TransportError):
            reason = error.message
            kind = FailureKind.TRANSPORT_ERROR
        else:
            reason = error.message
            kind = FailureKind.BACKEND_ERROR

        return GenerationFailure(
            reason=reason,
            kind=kind,
            last_attempted_provider=descriptor.id,
            last_attempted_model=error.model,
        )
