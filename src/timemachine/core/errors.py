"""Exception hierarchy for the History Time Machine.

Adapters raise :class:`AttemptError` subclasses; the orchestrator converts
them into a terminal :class:`~timemachine.core.models.GenerationFailure`, so
callers of ``generate()`` never see these exceptions directly.

=====================  ===========  ==========================================
Exception              Class.       Meaning
=====================  ===========  ==========================================
QuotaExceededError     retryable    Backend reported quota / zero-limit
BackendError           fatal        Rejected request or response without image
TransportError         fatal        Network-level failure (unreachable, timeout)
=====================  ===========  ==========================================
"""

from __future__ import annotations

from enum import Enum


class TimeMachineError(Exception):
    """Base class for all History Time Machine errors."""


class StorageError(TimeMachineError):
    """Raised when the secret store cannot persist a change."""


class HistoryLookupError(TimeMachineError):
    """Raised when the "on this day" feed cannot be fetched."""


class Classification(str, Enum):
    """Whether a failed attempt lets the orchestrator try the next model."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


class AttemptError(TimeMachineError):
    """A single model attempt failed.

    Attributes:
        model: Backend model identifier that was attempted.
        message: Human-readable failure message from the backend or adapter.
        classification: Whether escalation to the next model may continue.
    """

    classification: Classification = Classification.FATAL

    def __init__(self, model: str, message: str) -> None:
        super().__init__(message)
        self.model = model
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.classification is Classification.RETRYABLE


class QuotaExceededError(AttemptError):
    """The backend reported quota exhaustion for this model."""

    classification = Classification.RETRYABLE


class BackendError(AttemptError):
    """The backend rejected the request or returned no usable image."""


class TransportError(AttemptError):
    """The request never produced an HTTP response."""
