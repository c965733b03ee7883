"""History Time Machine - multi-provider image generation for moments in history."""

__version__ = "0.1.0"

from timemachine.core.config import TimeMachineConfig, config
from timemachine.core.orchestrator import GenerationOrchestrator
from timemachine.core.providers import ProviderRegistry, default_registry

__all__ = [
    "GenerationOrchestrator",
    "ProviderRegistry",
    "default_registry",
    "TimeMachineConfig",
    "config",
]
