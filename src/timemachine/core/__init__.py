"""Core functionality for multi-provider image generation.

This module provides the core components of the History Time Machine:

- **SecretStore**: Durable key-value store for provider credentials
- **ProviderRegistry**: Immutable catalog of providers and their model candidates
- **Adapters**: One per backend family (direct-URL, multimodal, image API)
- **GenerationOrchestrator**: Resolves a provider and escalates across models
- **TimeMachineConfig**: Configuration management using Pydantic Settings

Architecture Overview
---------------------
Components are layered leaves first:

1. **Secret Store** (secret_store.py):
   - One base64-encoded value per credential type in SQLite
   - Write failures raise StorageError

2. **Provider Registry** (providers.py):
   - Frozen ProviderDescriptor records, injected into the orchestrator
   - Pure "auto" selection rule based on credential presence

3. **Provider Adapters** (adapters/):
   - Build the request, parse the image, classify failures
   - Quota messages are the only retryable failure

4. **Fallback Orchestrator** (orchestrator.py):
   - Sequential model escalation, exactly one outcome per request

5. **Support Utilities**:
   - prompt_builder.py: Coordinates/date and event prompt formatting
   - history.py: "On this day" event lookup

Usage Example
-------------
    import httpx
    from timemachine.core import GenerationOrchestrator, SecretStore, config, default_registry
    from timemachine.core.adapters import build_adapters

    async with httpx.AsyncClient(timeout=config.request_timeout) as client:
        orchestrator = GenerationOrchestrator(
            default_registry(),
            SecretStore(config.secret_store_path),
            build_adapters(client, config),
        )
        outcome = await orchestrator.generate("Pompeii, August 24, 79 CE", "auto")
"""

from timemachine.core.config import TimeMachineConfig, config
from timemachine.core.errors import StorageError
from timemachine.core.models import GenerationFailure, GenerationRequest, GenerationSuccess
from timemachine.core.orchestrator import GenerationOrchestrator
from timemachine.core.providers import ProviderDescriptor, ProviderRegistry, default_registry
from timemachine.core.secret_store import InMemorySecretStore, SecretStore

__all__ = [
    "GenerationFailure",
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationSuccess",
    "InMemorySecretStore",
    "ProviderDescriptor",
    "ProviderRegistry",
    "SecretStore",
    "StorageError",
    "TimeMachineConfig",
    "config",
    "default_registry",
]
